"""휴가 관리 레포지토리 — 휴가 유형, 잔여, 신청 DB 쿼리.

Leave Repository — Leave type catalog, balance ledger and request queries.
Balance debits and request transitions are conditional updates so that
concurrent approvals cannot double-debit or double-transition.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, extract, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.enums import LeaveRequestStatus
from hrms.models.leave import LeaveBalance, LeaveRequest, LeaveType
from hrms.repositories.base import BaseRepository


class LeaveTypeRepository(BaseRepository[LeaveType]):
    """휴가 유형 레포지토리 (Leave type repository)."""

    def __init__(self) -> None:
        super().__init__(LeaveType)

    async def get_by_org(self, db: AsyncSession, organization_id: UUID) -> Sequence[LeaveType]:
        result = await db.execute(
            select(LeaveType).where(LeaveType.organization_id == organization_id).order_by(LeaveType.name)
        )
        return result.scalars().all()

    async def get_by_name(self, db: AsyncSession, organization_id: UUID, name: str) -> LeaveType | None:
        """이름으로 조회 (대소문자 무시) (Case-insensitive lookup by name)."""
        result = await db.execute(
            select(LeaveType).where(
                LeaveType.organization_id == organization_id,
                func.lower(LeaveType.name) == name.lower(),
            )
        )
        return result.scalar_one_or_none()


class LeaveBalanceRepository(BaseRepository[LeaveBalance]):
    """휴가 잔여 레포지토리 (Leave balance repository)."""

    def __init__(self) -> None:
        super().__init__(LeaveBalance)

    async def get_for(
        self,
        db: AsyncSession,
        user_id: UUID,
        leave_type_id: UUID,
        year: int,
    ) -> LeaveBalance | None:
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.user_id == user_id,
                LeaveBalance.leave_type_id == leave_type_id,
                LeaveBalance.year == year,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_user_year(self, db: AsyncSession, user_id: UUID, year: int) -> Sequence[LeaveBalance]:
        result = await db.execute(
            select(LeaveBalance).where(LeaveBalance.user_id == user_id, LeaveBalance.year == year)
        )
        return result.scalars().all()

    async def get_keys_for_year(
        self,
        db: AsyncSession,
        organization_id: UUID,
        year: int,
    ) -> set[tuple[UUID, UUID]]:
        """연도별 기존 (사용자, 유형) 키 집합 (Existing (user, type) pairs for a year)."""
        result = await db.execute(
            select(LeaveBalance.user_id, LeaveBalance.leave_type_id).where(
                LeaveBalance.organization_id == organization_id,
                LeaveBalance.year == year,
            )
        )
        return {(user_id, type_id) for user_id, type_id in result.all()}

    async def get_for_org_year(
        self,
        db: AsyncSession,
        organization_id: UUID,
        year: int,
    ) -> Sequence[LeaveBalance]:
        result = await db.execute(
            select(LeaveBalance).where(
                LeaveBalance.organization_id == organization_id,
                LeaveBalance.year == year,
            )
        )
        return result.scalars().all()

    async def debit(self, db: AsyncSession, balance_id: UUID, days: float) -> bool:
        """잔여가 충분할 때만 차감합니다.

        Move ``days`` from remaining to used, only if remaining still covers
        it. Returns False when the balance is insufficient.
        """
        result = await db.execute(
            update(LeaveBalance)
            .where(LeaveBalance.id == balance_id, LeaveBalance.remaining >= days)
            .values(used=LeaveBalance.used + days, remaining=LeaveBalance.remaining - days)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1


class LeaveRequestRepository(BaseRepository[LeaveRequest]):
    """휴가 신청 레포지토리 (Leave request repository)."""

    def __init__(self) -> None:
        super().__init__(LeaveRequest)

    async def find_overlap(
        self,
        db: AsyncSession,
        user_id: UUID,
        start: date,
        end: date,
    ) -> LeaveRequest | None:
        """기간이 겹치는 대기/승인 신청 (Pending or approved request sharing a day)."""
        result = await db.execute(
            select(LeaveRequest).where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.status.in_(
                    [LeaveRequestStatus.PENDING.value, LeaveRequestStatus.APPROVED.value]
                ),
                LeaveRequest.start_date <= end,
                LeaveRequest.end_date >= start,
            )
        )
        return result.scalars().first()

    async def transition(
        self,
        db: AsyncSession,
        request_id: UUID,
        new_status: LeaveRequestStatus,
        **values,
    ) -> bool:
        """PENDING 상태에서만 전이합니다.

        Move a request out of PENDING. Returns False if it is no longer pending.
        """
        result = await db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.id == request_id, LeaveRequest.status == LeaveRequestStatus.PENDING.value)
            .values(status=new_status.value, **values)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID | None = None,
        status: str | None = None,
        year: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[LeaveRequest], int]:
        query: Select = select(LeaveRequest).where(LeaveRequest.organization_id == organization_id)
        if user_id is not None:
            query = query.where(LeaveRequest.user_id == user_id)
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        if year is not None:
            query = query.where(extract("year", LeaveRequest.start_date) == year)
        query = query.order_by(LeaveRequest.created_at.desc())
        return await self.get_paginated(db, query, page, limit)

    async def get_on_leave(self, db: AsyncSession, organization_id: UUID, day: date) -> Sequence[LeaveRequest]:
        result = await db.execute(
            select(LeaveRequest).where(
                LeaveRequest.organization_id == organization_id,
                LeaveRequest.status == LeaveRequestStatus.APPROVED.value,
                LeaveRequest.start_date <= day,
                LeaveRequest.end_date >= day,
            )
        )
        return result.scalars().all()

    async def get_upcoming(self, db: AsyncSession, user_id: UUID, today: date, limit: int = 5) -> Sequence[LeaveRequest]:
        result = await db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.status == LeaveRequestStatus.APPROVED.value,
                LeaveRequest.start_date >= today,
            )
            .order_by(LeaveRequest.start_date)
            .limit(limit)
        )
        return result.scalars().all()

    async def get_past(self, db: AsyncSession, user_id: UUID, today: date, limit: int = 10) -> Sequence[LeaveRequest]:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.user_id == user_id, LeaveRequest.end_date < today)
            .order_by(LeaveRequest.start_date.desc())
            .limit(limit)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 (Singleton instances)
leave_type_repository: LeaveTypeRepository = LeaveTypeRepository()
leave_balance_repository: LeaveBalanceRepository = LeaveBalanceRepository()
leave_request_repository: LeaveRequestRepository = LeaveRequestRepository()
