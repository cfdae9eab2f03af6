"""APScheduler 설정 — 매일 자동 퇴근 처리.

Background scheduler. A single cron job closes the previous day's open
attendance sessions for every organization at AUTO_CHECKOUT_HOUR:00 in
SCHEDULER_TIMEZONE.
"""

import logging

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from hrms.config import settings
from hrms.database import async_session, utcnow
from hrms.services.attendance_service import attendance_service

logger = logging.getLogger(__name__)

AUTO_CHECKOUT_JOB_ID: str = "auto_checkout"

scheduler: AsyncIOScheduler = AsyncIOScheduler(
    jobstores={"default": MemoryJobStore()},
    executors={"default": AsyncIOExecutor()},
    job_defaults={
        "coalesce": True,  # 밀린 실행은 한 번으로 (Collapse missed runs)
        "max_instances": 1,
        "misfire_grace_time": 300,
    },
    timezone=settings.SCHEDULER_TIMEZONE,
)


async def run_auto_checkout() -> int:
    """자동 퇴근 작업 — 세션 하나, 커밋 한 번.

    Returns:
        int: 종료된 세션 수 (Number of sessions closed)
    """
    async with async_session() as db:
        try:
            closed: int = await attendance_service.auto_checkout(db, utcnow())
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Auto-checkout job failed")
            raise
    logger.info("Auto-checkout closed %d session(s)", closed)
    return closed


def start_scheduler() -> None:
    """스케줄러 시작 및 작업 등록 (Register jobs and start)."""
    if scheduler.running:
        return
    scheduler.add_job(
        run_auto_checkout,
        "cron",
        hour=settings.AUTO_CHECKOUT_HOUR,
        minute=0,
        id=AUTO_CHECKOUT_JOB_ID,
        name="Auto check-out of previous day's open sessions",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler started: auto-checkout daily at %02d:00 %s",
        settings.AUTO_CHECKOUT_HOUR, settings.SCHEDULER_TIMEZONE,
    )


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
