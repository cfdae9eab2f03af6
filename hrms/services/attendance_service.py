"""근태 서비스 — 출퇴근 기록, 상태 판정, 자동 퇴근 처리.

Attendance Service — Check-in/check-out, duration-based status, admin
edits and the daily auto-checkout sweep.

Status rule (worked minutes at checkout):
    < 300        → ABSENT
    300 ~ 419    → HALF_DAY
    >= 420       → PRESENT
The thresholds are fixed and do not read attendancePolicy.minHoursPerDay.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.attendance import Attendance
from hrms.models.enums import ADMIN_ROLES, AttendanceStatus, AuditAction
from hrms.models.organization import Organization
from hrms.models.user import User
from hrms.repositories.attendance_repository import attendance_repository
from hrms.repositories.organization_repository import organization_repository
from hrms.schemas.attendance import AttendanceUpdate
from hrms.services.audit_service import audit_service
from hrms.utils.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

HALF_DAY_MINUTES: int = 300
FULL_DAY_MINUTES: int = 420
AUTO_CHECKOUT_REASON: str = "Auto checkout: no check-out recorded"


def derive_status(minutes: float) -> AttendanceStatus:
    """근무 시간(분)으로 근태 상태를 판정합니다 (Status from worked minutes)."""
    if minutes < HALF_DAY_MINUTES:
        return AttendanceStatus.ABSENT
    if minutes < FULL_DAY_MINUTES:
        return AttendanceStatus.HALF_DAY
    return AttendanceStatus.PRESENT


def worked_minutes(check_in: datetime, check_out: datetime) -> int:
    return int((check_out - check_in).total_seconds() // 60)


def org_timezone(org: Organization) -> ZoneInfo:
    try:
        return ZoneInfo(org.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r for org=%s; using UTC", org.timezone, org.id)
        return ZoneInfo("UTC")


def day_bounds(day: date, tz: ZoneInfo | timezone = timezone.utc) -> tuple[datetime, datetime]:
    """하루의 [시작, 다음날 시작) 구간 (Half-open bounds of a local day)."""
    start: datetime = datetime.combine(day, time.min, tzinfo=tz)
    return start, start + timedelta(days=1)


class AttendanceService:
    """근태 관리 비즈니스 로직 (Attendance business logic)."""

    async def check_in(
        self,
        db: AsyncSession,
        user: User,
        ip_address: str | None = None,
        device_info: str | None = None,
    ) -> Attendance:
        """출근 처리.

        Open a session for the user. The pre-check gives a friendly error;
        the partial unique index on open sessions settles concurrent calls.

        Raises:
            ConflictError: 이미 열린 세션 존재 (An open session already exists)
        """
        if await attendance_repository.get_open_session(db, user.id) is not None:
            raise ConflictError("Already checked in. Please check out first.")

        try:
            record: Attendance = await attendance_repository.create(
                db,
                {
                    "organization_id": user.organization_id,
                    "user_id": user.id,
                    "check_in": utcnow(),
                    "status": AttendanceStatus.PRESENT.value,
                    "ip_address": ip_address,
                    "device_info": device_info,
                },
            )
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Already checked in. Please check out first.")

        await audit_service.record(
            db, user.organization_id, AuditAction.CHECK_IN, user_id=user.id,
            details={"attendanceId": record.id, "checkIn": record.check_in}, ip_address=ip_address,
        )
        return record

    async def check_out(self, db: AsyncSession, user: User, ip_address: str | None = None) -> Attendance:
        """퇴근 처리 — 근무 시간으로 상태 판정.

        Raises:
            NotFoundError: 열린 세션 없음 (No open session)
        """
        record: Attendance | None = await attendance_repository.get_open_session(db, user.id)
        if record is None:
            raise NotFoundError("No active check-in found")

        now: datetime = utcnow()
        minutes: int = worked_minutes(record.check_in, now)
        status: AttendanceStatus = derive_status(minutes)

        if not await attendance_repository.close_if_open(db, record.id, now, status.value):
            raise NotFoundError("No active check-in found")
        await db.refresh(record)

        await audit_service.record(
            db, user.organization_id, AuditAction.CHECK_OUT, user_id=user.id,
            details={"attendanceId": record.id, "durationMinutes": minutes, "status": status.value},
            ip_address=ip_address,
        )
        return record

    async def list_records(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Attendance], int]:
        if start_date and end_date and start_date > end_date:
            raise BadRequestError("startDate must be on or before endDate")
        start: datetime | None = day_bounds(start_date)[0] if start_date else None
        end: datetime | None = day_bounds(end_date)[1] - timedelta(microseconds=1) if end_date else None
        return await attendance_repository.get_filtered(
            db, organization_id, user_id=user_id, start=start, end=end, page=page, limit=limit
        )

    async def get_record(self, db: AsyncSession, attendance_id: UUID, actor: User) -> Attendance:
        """단건 조회 — 본인 또는 관리자만.

        Raises:
            NotFoundError: 없음 또는 다른 조직 (Absent or out of tenant)
            ForbiddenError: 다른 직원의 기록 (Another employee's record)
        """
        record: Attendance | None = await attendance_repository.get_by_id(
            db, attendance_id, actor.organization_id
        )
        if record is None:
            raise NotFoundError("Attendance record not found")
        if record.user_id != actor.id and actor.role not in {r.value for r in ADMIN_ROLES}:
            raise ForbiddenError("You can only view your own attendance")
        return record

    async def update_record(
        self,
        db: AsyncSession,
        attendance_id: UUID,
        data: AttendanceUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> Attendance:
        """관리자 수동 수정 — 상태는 재계산하지 않음.

        Overwrite check-in/check-out. The stored status is left as is.
        """
        record: Attendance | None = await attendance_repository.get_by_id(
            db, attendance_id, actor.organization_id
        )
        if record is None:
            raise NotFoundError("Attendance record not found")

        before: dict[str, Any] = {"checkIn": record.check_in, "checkOut": record.check_out}
        changes: dict[str, Any] = data.model_dump(exclude_none=True)
        new_in: datetime = changes.get("check_in", record.check_in)
        new_out: datetime | None = changes.get("check_out", record.check_out)
        if new_out is not None and new_out < new_in:
            raise BadRequestError("checkOut must be after checkIn")

        changes["is_manual_edit"] = True
        record = await attendance_repository.update(db, record, changes)

        await audit_service.record(
            db, actor.organization_id, AuditAction.ATTENDANCE_EDITED, user_id=actor.id,
            details={
                "attendanceId": record.id,
                "employeeId": record.user_id,
                "before": before,
                "after": {"checkIn": record.check_in, "checkOut": record.check_out},
            },
            ip_address=ip_address,
        )
        return record

    async def today_counts(self, db: AsyncSession, org: Organization, now: datetime | None = None) -> dict[str, int]:
        """오늘(조직 시간대) 상태별 건수, 모든 상태 기본 0."""
        tz: ZoneInfo = org_timezone(org)
        start, end = day_bounds((now or utcnow()).astimezone(tz).date(), tz)
        counts: dict[str, int] = {status.value: 0 for status in AttendanceStatus}
        counts.update(await attendance_repository.count_by_status(db, org.id, start, end))
        return counts

    async def auto_checkout(self, db: AsyncSession, now: datetime | None = None) -> int:
        """자동 퇴근 처리 — 전날 열린 세션을 23:59:59.999에 종료.

        For every active organization, close sessions checked in on the
        previous local calendar day that are still open. Each close is a
        conditional update, so a concurrent live check-out wins cleanly and
        re-running the sweep processes nothing twice.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            now: 기준 시각, 테스트용 주입 (Injected clock; defaults to current UTC)

        Returns:
            int: 종료된 세션 수 (Number of sessions closed)
        """
        now = now or utcnow()
        closed: int = 0

        for org in await organization_repository.get_active(db):
            if not (org.attendance_policy or {}).get("autoCheckoutEnabled", True):
                continue

            tz: ZoneInfo = org_timezone(org)
            yesterday: date = now.astimezone(tz).date() - timedelta(days=1)
            start, end = day_bounds(yesterday, tz)
            close_at: datetime = datetime.combine(yesterday, time(23, 59, 59, 999000), tzinfo=tz)

            for record in await attendance_repository.get_open_in_range(db, org.id, start, end):
                minutes: int = worked_minutes(record.check_in, close_at)
                status: AttendanceStatus = derive_status(minutes)
                if not await attendance_repository.close_if_open(
                    db, record.id, close_at, status.value, is_manual_edit=True
                ):
                    continue

                await audit_service.record(
                    db, org.id, AuditAction.AUTO_CHECK_OUT, user_id=record.user_id,
                    details={
                        "attendanceId": record.id,
                        "reason": AUTO_CHECKOUT_REASON,
                        "autoCheckoutTime": close_at,
                        "calculatedDuration": minutes,
                        "status": status.value,
                    },
                )
                closed += 1

        logger.info("Auto-checkout closed %d session(s) at %s", closed, now.isoformat())
        return closed


# 싱글턴 인스턴스 (Singleton instance)
attendance_service: AttendanceService = AttendanceService()
