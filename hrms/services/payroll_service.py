"""급여 서비스 — 급여 구조, 월별 급여 생성, 지급 처리.

Payroll Service — Salary structures with a fixed-ratio breakdown,
best-effort monthly generation, adjustments and payment. Totals are
recomputed by the Payroll model on every save.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.enums import AuditAction, PayrollStatus
from hrms.models.payroll import Payroll, SalaryStructure
from hrms.models.user import User
from hrms.repositories.payroll_repository import payroll_repository, salary_structure_repository
from hrms.repositories.user_repository import user_repository
from hrms.schemas.payroll import (
    GeneratePayrollRequest,
    MarkPaidRequest,
    PayrollUpdate,
    SalaryStructureUpsert,
)
from hrms.services.audit_service import audit_service
from hrms.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

BASIC_RATIO: Decimal = Decimal("0.40")
HRA_RATIO: Decimal = Decimal("0.16")
DAYS_PER_MONTH: Decimal = Decimal("30")
_CENT: Decimal = Decimal("0.01")


def _round(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_breakdown(gross_salary: float) -> dict[str, float]:
    """총액을 기본급 40% / HRA 16% / 기타 수당(나머지)으로 분할합니다.

    basic and hra are rounded to 2 dp independently; other allowances is
    the remainder, so the three always add back to gross.
    """
    gross: Decimal = _round(Decimal(str(gross_salary)))
    basic: Decimal = _round(gross * BASIC_RATIO)
    hra: Decimal = _round(gross * HRA_RATIO)
    other: Decimal = gross - basic - hra
    return {
        "gross_salary": float(gross),
        "basic": float(basic),
        "hra": float(hra),
        "other_allowances": float(other),
        "per_day_salary": float(_round(gross / DAYS_PER_MONTH)),
    }


class PayrollService:
    """급여 비즈니스 로직 (Payroll business logic)."""

    async def set_salary_structure(
        self,
        db: AsyncSession,
        data: SalaryStructureUpsert,
        actor: User,
        ip_address: str | None = None,
    ) -> SalaryStructure:
        """급여 구조 생성/갱신 (Upsert the structure and its derived breakdown)."""
        org_id: UUID = actor.organization_id
        if await user_repository.get_by_id(db, data.user_id, org_id) is None:
            raise NotFoundError("Employee not found")

        values: dict[str, Any] = {
            **calculate_breakdown(data.gross_salary),
            "bank_name": data.bank_name,
            "account_number": data.account_number,
            "ifsc_code": data.ifsc_code,
            "is_active": True,
        }
        structure: SalaryStructure | None = await salary_structure_repository.get_by_user(db, data.user_id)
        if structure is None:
            structure = await salary_structure_repository.create(
                db, {"organization_id": org_id, "user_id": data.user_id, **values}
            )
        else:
            structure = await salary_structure_repository.update(db, structure, values)

        await audit_service.record(
            db, org_id, AuditAction.SALARY_STRUCTURE_UPDATED, user_id=actor.id,
            details={"employeeId": data.user_id, "grossSalary": structure.gross_salary},
            ip_address=ip_address,
        )
        return structure

    async def get_my_structure(self, db: AsyncSession, user: User) -> SalaryStructure:
        structure: SalaryStructure | None = await salary_structure_repository.get_by_user(db, user.id)
        if structure is None:
            raise NotFoundError("Salary structure not found")
        return structure

    async def list_structures(
        self,
        db: AsyncSession,
        organization_id: UUID,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[SalaryStructure], int]:
        return await salary_structure_repository.get_active_paginated(db, organization_id, page, limit)

    async def generate(
        self,
        db: AsyncSession,
        data: GeneratePayrollRequest,
        actor: User,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """월별 급여 생성 — 이미 생성된 직원은 건너뜀.

        Insert one DRAFT payroll per active salary structure. Employees that
        already have a row for the period are reported as skipped; each
        insert runs in a savepoint so a lost race on the unique
        (user, month, year) constraint skips only that employee.

        Returns:
            dict: generated, skipped, generatedCount, skippedCount
        """
        org_id: UUID = actor.organization_id
        structures: Sequence[SalaryStructure] = await salary_structure_repository.get_active(db, org_id)
        done: set[UUID] = await payroll_repository.get_user_ids_for_period(db, org_id, data.month, data.year)

        generated: list[Payroll] = []
        skipped: list[dict[str, Any]] = []
        for structure in structures:
            if structure.user_id in done:
                skipped.append({"userId": structure.user_id, "message": "Payroll already exists for this period"})
                continue

            payroll = Payroll(
                organization_id=org_id,
                user_id=structure.user_id,
                month=data.month,
                year=data.year,
                gross_salary=structure.gross_salary,
                basic=structure.basic,
                hra=structure.hra,
                other_allowances=structure.other_allowances,
                working_days=30,
                present_days=30,
                lop_days=0,
                status=PayrollStatus.DRAFT.value,
                generated_by=actor.id,
            )
            try:
                async with db.begin_nested():
                    db.add(payroll)
            except IntegrityError:
                skipped.append({"userId": structure.user_id, "message": "Payroll already exists for this period"})
                continue
            generated.append(payroll)

        await audit_service.record(
            db, org_id, AuditAction.PAYROLL_GENERATED, user_id=actor.id,
            details={
                "month": data.month,
                "year": data.year,
                "generated": len(generated),
                "skipped": len(skipped),
            },
            ip_address=ip_address,
        )
        logger.info(
            "Payroll %02d/%d org=%s generated=%d skipped=%d",
            data.month, data.year, org_id, len(generated), len(skipped),
        )
        return {
            "generated": generated,
            "skipped": skipped,
            "generatedCount": len(generated),
            "skippedCount": len(skipped),
        }

    async def list_payrolls(
        self,
        db: AsyncSession,
        organization_id: UUID,
        month: int | None = None,
        year: int | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Payroll], int, dict[str, float]]:
        items, total = await payroll_repository.get_filtered(
            db, organization_id, month=month, year=year, status=status, page=page, limit=limit
        )
        totals: dict[str, float] = await payroll_repository.get_totals(
            db, organization_id, month=month, year=year, status=status
        )
        return items, total, totals

    async def _get(self, db: AsyncSession, payroll_id: UUID, organization_id: UUID) -> Payroll:
        payroll: Payroll | None = await payroll_repository.get_by_id(db, payroll_id, organization_id)
        if payroll is None:
            raise NotFoundError("Payroll not found")
        return payroll

    async def get_payslip(self, db: AsyncSession, payroll_id: UUID, actor: User, is_admin: bool) -> Payroll:
        """급여 명세 조회 — 관리자는 조직 전체, 직원은 본인만.

        Non-admins asking for someone else's payslip get 404.
        """
        payroll: Payroll = await self._get(db, payroll_id, actor.organization_id)
        if not is_admin and payroll.user_id != actor.id:
            raise NotFoundError("Payroll not found")
        return payroll

    async def my_payslips(self, db: AsyncSession, user: User) -> Sequence[Payroll]:
        return await payroll_repository.get_for_user(db, user.id, limit=12)

    async def update(
        self,
        db: AsyncSession,
        payroll_id: UUID,
        data: PayrollUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> Payroll:
        """급여 조정 — 지급 완료 건은 수정 불가.

        Raises:
            ForbiddenError: 지급 완료 (Already PAID)
        """
        payroll: Payroll = await self._get(db, payroll_id, actor.organization_id)
        if payroll.status == PayrollStatus.PAID.value:
            raise ForbiddenError("Paid payroll cannot be modified")

        changes: dict[str, Any] = data.model_dump(exclude_none=True)
        if not changes:
            raise BadRequestError("No fields to update")

        payroll = await payroll_repository.update(db, payroll, changes)
        await audit_service.record(
            db, actor.organization_id, AuditAction.PAYROLL_UPDATED, user_id=actor.id,
            details={"payrollId": payroll.id, "changes": data.model_dump(by_alias=True, exclude_none=True)},
            ip_address=ip_address,
        )
        return payroll

    async def mark_paid(
        self,
        db: AsyncSession,
        payroll_id: UUID,
        data: MarkPaidRequest,
        actor: User,
        ip_address: str | None = None,
    ) -> Payroll:
        payroll: Payroll = await self._get(db, payroll_id, actor.organization_id)
        if payroll.status == PayrollStatus.PAID.value:
            raise BadRequestError("Payroll is already marked as paid")

        payroll = await payroll_repository.update(
            db,
            payroll,
            {
                "status": PayrollStatus.PAID.value,
                "paid_on": data.paid_on or utcnow().date(),
                "payment_method": data.payment_method,
                "transaction_id": data.transaction_id,
            },
        )
        await audit_service.record(
            db, actor.organization_id, AuditAction.PAYROLL_MARKED_PAID, user_id=actor.id,
            details={"payrollId": payroll.id, "paidOn": payroll.paid_on, "paymentMethod": payroll.payment_method},
            ip_address=ip_address,
        )
        return payroll

    async def delete(
        self,
        db: AsyncSession,
        payroll_id: UUID,
        actor: User,
        ip_address: str | None = None,
    ) -> None:
        """급여 삭제 — 지급 완료 건은 삭제 불가.

        Raises:
            ForbiddenError: 지급 완료 (Already PAID)
        """
        payroll: Payroll = await self._get(db, payroll_id, actor.organization_id)
        if payroll.status == PayrollStatus.PAID.value:
            raise ForbiddenError("Paid payroll cannot be deleted")

        details: dict[str, Any] = {
            "payrollId": payroll.id,
            "employeeId": payroll.user_id,
            "month": payroll.month,
            "year": payroll.year,
        }
        await payroll_repository.delete(db, payroll.id, actor.organization_id)
        await audit_service.record(
            db, actor.organization_id, AuditAction.PAYROLL_DELETED, user_id=actor.id,
            details=details, ip_address=ip_address,
        )

    async def year_summary(self, db: AsyncSession, organization_id: UUID, year: int) -> list[dict]:
        return await payroll_repository.get_year_summary(db, organization_id, year)


# 싱글턴 인스턴스 (Singleton instance)
payroll_service: PayrollService = PayrollService()
