"""급여 관리 SQLAlchemy ORM 모델 정의.

Payroll SQLAlchemy ORM model definitions.

Tables:
    - salary_structures: 사용자별 급여 구조 (One per user; fixed-ratio breakdown)
    - payrolls: 월별 급여 명세 (One per user/month/year; totals derived on save)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, Float, Integer, String, ForeignKey, UniqueConstraint, Uuid, event
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow
from hrms.models.enums import PayrollStatus


class SalaryStructure(Base):
    """급여 구조 모델 — 사용자와 1:1.

    Salary structure: gross salary split 40% basic / 16% HRA / remainder
    other allowances, plus bank details.
    """

    __tablename__ = "salary_structures"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    gross_salary: Mapped[float] = mapped_column(Float, nullable=False)
    basic: Mapped[float] = mapped_column(Float, nullable=False)
    hra: Mapped[float] = mapped_column(Float, nullable=False)
    other_allowances: Mapped[float] = mapped_column(Float, nullable=False)
    per_day_salary: Mapped[float] = mapped_column(Float, nullable=False)
    bank_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ifsc_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class Payroll(Base):
    """월별 급여 명세 모델.

    Monthly payroll record. Snapshots the salary breakdown at generation
    time; totals are recomputed before every insert and update.
    """

    __tablename__ = "payrolls"
    __table_args__ = (UniqueConstraint("user_id", "month", "year", name="uq_payrolls_user_month_year"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # 생성 시점 스냅샷 (Breakdown snapshot at generation time)
    gross_salary: Mapped[float] = mapped_column(Float, nullable=False)
    basic: Mapped[float] = mapped_column(Float, nullable=False)
    hra: Mapped[float] = mapped_column(Float, nullable=False)
    other_allowances: Mapped[float] = mapped_column(Float, nullable=False)

    # 조정 항목 (Adjustable fields)
    reimbursement: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    incentives: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    arrears: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    tds_deduction: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    other_deductions: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    working_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    present_days: Mapped[float] = mapped_column(Float, nullable=False, default=30)
    lop_days: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    # 파생 합계 (Derived totals)
    total_earnings: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_deductions: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    net_salary: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PayrollStatus.DRAFT.value)
    paid_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    generated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    def compute_totals(self) -> None:
        """합계를 다시 계산합니다.

        Recompute total earnings, total deductions and net salary.
        Loss-of-pay is charged at gross/30 per day.
        """
        earnings: float = (
            (self.basic or 0)
            + (self.hra or 0)
            + (self.other_allowances or 0)
            + (self.reimbursement or 0)
            + (self.incentives or 0)
            + (self.arrears or 0)
        )
        deductions: float = (self.tds_deduction or 0) + (self.other_deductions or 0)
        lop_amount: float = (self.gross_salary or 0) / 30 * (self.lop_days or 0)

        self.total_earnings = round(earnings, 2)
        self.total_deductions = round(deductions, 2)
        self.net_salary = round(earnings - deductions - lop_amount, 2)


@event.listens_for(Payroll, "before_insert")
@event.listens_for(Payroll, "before_update")
def _payroll_before_save(mapper, connection, target: Payroll) -> None:
    target.compute_totals()
