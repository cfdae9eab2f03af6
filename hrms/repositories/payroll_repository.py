"""급여 레포지토리 — 급여 구조 및 급여 명세 DB 쿼리.

Payroll Repository — Salary structure and payroll record queries.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.payroll import Payroll, SalaryStructure
from hrms.repositories.base import BaseRepository


class SalaryStructureRepository(BaseRepository[SalaryStructure]):
    """급여 구조 레포지토리 (Salary structure repository)."""

    def __init__(self) -> None:
        super().__init__(SalaryStructure)

    async def get_by_user(self, db: AsyncSession, user_id: UUID) -> SalaryStructure | None:
        result = await db.execute(select(SalaryStructure).where(SalaryStructure.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_active(self, db: AsyncSession, organization_id: UUID) -> Sequence[SalaryStructure]:
        result = await db.execute(
            select(SalaryStructure).where(
                SalaryStructure.organization_id == organization_id,
                SalaryStructure.is_active.is_(True),
            )
        )
        return result.scalars().all()

    async def get_active_paginated(
        self,
        db: AsyncSession,
        organization_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[SalaryStructure], int]:
        query: Select = (
            select(SalaryStructure)
            .where(SalaryStructure.organization_id == organization_id, SalaryStructure.is_active.is_(True))
            .order_by(SalaryStructure.created_at.desc())
        )
        return await self.get_paginated(db, query, page, limit)


class PayrollRepository(BaseRepository[Payroll]):
    """급여 명세 레포지토리 (Payroll record repository)."""

    def __init__(self) -> None:
        super().__init__(Payroll)

    def _filtered_query(
        self,
        organization_id: UUID,
        month: int | None,
        year: int | None,
        status: str | None,
    ) -> Select:
        query: Select = select(Payroll).where(Payroll.organization_id == organization_id)
        if month is not None:
            query = query.where(Payroll.month == month)
        if year is not None:
            query = query.where(Payroll.year == year)
        if status is not None:
            query = query.where(Payroll.status == status)
        return query

    async def get_user_ids_for_period(
        self,
        db: AsyncSession,
        organization_id: UUID,
        month: int,
        year: int,
    ) -> set[UUID]:
        result = await db.execute(
            select(Payroll.user_id).where(
                Payroll.organization_id == organization_id,
                Payroll.month == month,
                Payroll.year == year,
            )
        )
        return set(result.scalars().all())

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        month: int | None = None,
        year: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Payroll], int]:
        query: Select = self._filtered_query(organization_id, month, year, status).order_by(
            Payroll.year.desc(), Payroll.month.desc(), Payroll.created_at.desc()
        )
        return await self.get_paginated(db, query, page, limit)

    async def get_totals(
        self,
        db: AsyncSession,
        organization_id: UUID,
        month: int | None = None,
        year: int | None = None,
        status: str | None = None,
    ) -> dict[str, float]:
        """필터 집합의 합계 (Gross/net/deduction totals across the filtered set)."""
        sub = self._filtered_query(organization_id, month, year, status).subquery()
        result = await db.execute(
            select(
                func.coalesce(func.sum(sub.c.gross_salary), 0),
                func.coalesce(func.sum(sub.c.net_salary), 0),
                func.coalesce(func.sum(sub.c.total_deductions), 0),
            )
        )
        gross, net, deductions = result.one()
        return {
            "totalGross": round(float(gross), 2),
            "totalNet": round(float(net), 2),
            "totalDeductions": round(float(deductions), 2),
        }

    async def get_year_summary(self, db: AsyncSession, organization_id: UUID, year: int) -> list[dict]:
        """월/상태별 집계 (Count and net total grouped by month and status)."""
        result = await db.execute(
            select(Payroll.month, Payroll.status, func.count(), func.coalesce(func.sum(Payroll.net_salary), 0))
            .where(Payroll.organization_id == organization_id, Payroll.year == year)
            .group_by(Payroll.month, Payroll.status)
            .order_by(Payroll.month)
        )
        return [
            {"month": month, "status": status, "count": count, "totalNet": round(float(net), 2)}
            for month, status, count, net in result.all()
        ]

    async def get_for_user(self, db: AsyncSession, user_id: UUID, limit: int = 12) -> Sequence[Payroll]:
        result = await db.execute(
            select(Payroll)
            .where(Payroll.user_id == user_id)
            .order_by(Payroll.year.desc(), Payroll.month.desc())
            .limit(limit)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 (Singleton instances)
salary_structure_repository: SalaryStructureRepository = SalaryStructureRepository()
payroll_repository: PayrollRepository = PayrollRepository()
