"""HR 운영 서버 패키지 (HR operations server package)."""
