"""백그라운드 작업 패키지 (Background jobs — APScheduler)."""
