"""조직 레포지토리 — 조직 조회 및 시퀀스 카운터.

Organization Repository — Organization lookup and per-organization counters.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.organization import Counter, Organization
from hrms.repositories.base import BaseRepository

EMPLOYEE_ID_COUNTER: str = "employee_id"


class OrganizationRepository(BaseRepository[Organization]):
    """조직 레포지토리 (Organization repository)."""

    def __init__(self) -> None:
        super().__init__(Organization)

    async def get_active(self, db: AsyncSession) -> Sequence[Organization]:
        result = await db.execute(select(Organization).where(Organization.is_active.is_(True)))
        return result.scalars().all()

    async def next_counter_value(
        self,
        db: AsyncSession,
        organization_id: UUID,
        name: str = EMPLOYEE_ID_COUNTER,
    ) -> int:
        """조직 카운터를 원자적으로 증가시키고 새 값을 반환합니다.

        Atomically increment a per-organization counter and return the new
        value. The first allocation inserts the row with value 1; the unique
        (organization_id, name) constraint arbitrates concurrent first use.
        """
        result = await db.execute(
            update(Counter)
            .where(Counter.organization_id == organization_id, Counter.name == name)
            .values(value=Counter.value + 1)
            .returning(Counter.value)
        )
        value: int | None = result.scalar_one_or_none()
        if value is not None:
            return value

        db.add(Counter(organization_id=organization_id, name=name, value=1))
        await db.flush()
        return 1

    async def next_employee_id(self, db: AsyncSession, organization_id: UUID) -> str:
        """사번 발급 — EMP-000001 형식 (Mint an employee ID)."""
        value: int = await self.next_counter_value(db, organization_id)
        return f"EMP-{value:06d}"


# 싱글턴 인스턴스 (Singleton instance)
organization_repository: OrganizationRepository = OrganizationRepository()
