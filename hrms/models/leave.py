"""휴가 관리 SQLAlchemy ORM 모델 정의.

Leave management SQLAlchemy ORM model definitions.

Tables:
    - leave_types: 조직별 휴가 유형 카탈로그 (Catalog synced from the leave policy)
    - leave_balances: 사용자/유형/연도별 잔여 (used + remaining ledger)
    - leave_requests: 휴가 신청 (Request lifecycle PENDING -> APPROVED/REJECTED/CANCELLED)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, Float, Integer, String, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow
from hrms.models.enums import LeaveRequestStatus


class LeaveType(Base):
    """휴가 유형 모델.

    Leave type catalog entry. Name, category, paid flag, carry-forward and cap
    come from the leave-policy sync; approval mode is admin-controlled.
    """

    __tablename__ = "leave_types"
    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_leave_types_org_name"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    auto_approve: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_per_year: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    carry_forward: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class LeaveBalance(Base):
    """휴가 잔여 원장 — (사용자, 유형, 연도)당 1행.

    Leave balance ledger row. The granted total is ``used + remaining``.
    leave_type_id is not a foreign key: deleting a leave type leaves its
    balances in place.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "leave_type_id", "year", name="uq_leave_balances_user_type_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    leave_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    used: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    remaining: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    @property
    def total(self) -> float:
        return (self.used or 0) + (self.remaining or 0)


class LeaveRequest(Base):
    """휴가 신청 모델.

    Leave request. Balance is debited at approval, or at creation when the
    leave type auto-approves.
    """

    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # FK 없음: 정책 동기화로 유형이 삭제되어도 신청 이력은 남음
    # (No FK: requests outlive a leave type removed by policy sync)
    leave_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LeaveRequestStatus.PENDING.value)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
