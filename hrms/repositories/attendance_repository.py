"""근태 관리 레포지토리 — 근태 관련 DB 쿼리 담당.

Attendance Repository — Handles attendance related database queries,
including the conditional close used by both check-out and the
auto-checkout sweep.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.attendance import Attendance
from hrms.repositories.base import BaseRepository


class AttendanceRepository(BaseRepository[Attendance]):
    """근태 기록 레포지토리.

    Attendance record repository.

    Extends:
        BaseRepository[Attendance]
    """

    def __init__(self) -> None:
        super().__init__(Attendance)

    async def get_open_session(self, db: AsyncSession, user_id: UUID) -> Attendance | None:
        """사용자의 열린 세션을 조회합니다 (The user's open session, if any)."""
        result = await db.execute(
            select(Attendance).where(Attendance.user_id == user_id, Attendance.check_out.is_(None))
        )
        return result.scalar_one_or_none()

    async def close_if_open(
        self,
        db: AsyncSession,
        attendance_id: UUID,
        check_out: datetime,
        status: str,
        is_manual_edit: bool = False,
    ) -> bool:
        """열린 세션만 닫는 조건부 업데이트.

        Close a session only if it is still open. Returns False when another
        writer (live check-out or sweep) closed it first.
        """
        values: dict = {"check_out": check_out, "status": status}
        if is_manual_edit:
            values["is_manual_edit"] = True
        result = await db.execute(
            update(Attendance)
            .where(Attendance.id == attendance_id, Attendance.check_out.is_(None))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Attendance], int]:
        """필터 조건에 맞는 근태 기록을 페이지네이션하여 조회합니다.

        Paginated attendance records, newest check-in first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            user_id: 사용자 필터, 선택 (Optional user filter)
            start: 체크인 하한 (Inclusive lower bound on check-in)
            end: 체크인 상한 (Inclusive upper bound on check-in)
            page: 페이지 번호 (Page number)
            limit: 페이지 크기 (Page size)
        """
        query: Select = select(Attendance).where(Attendance.organization_id == organization_id)
        if user_id is not None:
            query = query.where(Attendance.user_id == user_id)
        if start is not None:
            query = query.where(Attendance.check_in >= start)
        if end is not None:
            query = query.where(Attendance.check_in <= end)
        query = query.order_by(Attendance.check_in.desc())
        return await self.get_paginated(db, query, page, limit)

    async def get_in_range(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start: datetime,
        end: datetime,
    ) -> Sequence[Attendance]:
        """기간 내 체크인 기록 (Records whose check-in falls in [start, end))."""
        result = await db.execute(
            select(Attendance).where(
                Attendance.organization_id == organization_id,
                Attendance.check_in >= start,
                Attendance.check_in < end,
            ).order_by(Attendance.check_in)
        )
        return result.scalars().all()

    async def get_open_in_range(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start: datetime,
        end: datetime,
    ) -> Sequence[Attendance]:
        """기간 내 시작된 열린 세션 (Open sessions checked in during [start, end))."""
        result = await db.execute(
            select(Attendance).where(
                Attendance.organization_id == organization_id,
                Attendance.check_out.is_(None),
                Attendance.check_in >= start,
                Attendance.check_in < end,
            )
        )
        return result.scalars().all()

    async def count_by_status(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start: datetime,
        end: datetime,
    ) -> dict[str, int]:
        """상태별 건수 (Record counts grouped by status for [start, end))."""
        result = await db.execute(
            select(Attendance.status, func.count())
            .where(
                Attendance.organization_id == organization_id,
                Attendance.check_in >= start,
                Attendance.check_in < end,
            )
            .group_by(Attendance.status)
        )
        return {status: count for status, count in result.all()}


# 싱글턴 인스턴스 (Singleton instance)
attendance_repository: AttendanceRepository = AttendanceRepository()
