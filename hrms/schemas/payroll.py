"""급여 스키마 (Payroll request/response schemas)."""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from hrms.schemas.common import CamelModel


class SalaryStructureUpsert(CamelModel):
    """급여 구조 설정 — 총액으로부터 구성 항목 계산.

    Salary structure upsert; the breakdown is derived from gross salary.
    """

    user_id: UUID
    gross_salary: float = Field(ge=0)
    bank_name: str | None = None
    account_number: str | None = None
    ifsc_code: str | None = None


class SalaryStructureResponse(CamelModel):
    id: UUID
    user_id: UUID
    gross_salary: float
    basic: float
    hra: float
    other_allowances: float
    per_day_salary: float
    bank_name: str | None = None
    account_number: str | None = None
    ifsc_code: str | None = None
    is_active: bool


class GeneratePayrollRequest(CamelModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class PayrollUpdate(CamelModel):
    """급여 조정 — 합계는 저장 시 재계산 (Adjustments; totals recomputed on save)."""

    reimbursement: float | None = Field(default=None, ge=0)
    incentives: float | None = Field(default=None, ge=0)
    arrears: float | None = Field(default=None, ge=0)
    tds_deduction: float | None = Field(default=None, ge=0)
    other_deductions: float | None = Field(default=None, ge=0)
    lop_days: float | None = Field(default=None, ge=0, le=31)
    present_days: float | None = Field(default=None, ge=0, le=31)
    status: Literal["DRAFT", "PROCESSED"] | None = None


class MarkPaidRequest(CamelModel):
    paid_on: date | None = None
    payment_method: str = "BANK_TRANSFER"
    transaction_id: str | None = None


class PayrollResponse(CamelModel):
    id: UUID
    user_id: UUID
    month: int
    year: int
    gross_salary: float
    basic: float
    hra: float
    other_allowances: float
    reimbursement: float
    incentives: float
    arrears: float
    tds_deduction: float
    other_deductions: float
    working_days: int
    present_days: float
    lop_days: float
    total_earnings: float
    total_deductions: float
    net_salary: float
    status: str
    paid_on: date | None = None
    payment_method: str | None = None
    transaction_id: str | None = None
    created_at: datetime | None = None
