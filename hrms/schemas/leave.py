"""휴가 스키마 (Leave request/response schemas)."""

from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from hrms.schemas.common import CamelModel


class LeaveRequestCreate(CamelModel):
    """휴가 신청 요청 (Leave application; start must not be after end)."""

    leave_type_id: UUID
    start_date: date
    end_date: date
    reason: str | None = None


class LeaveRejectRequest(CamelModel):
    rejection_reason: str | None = None


class LeaveRequestResponse(CamelModel):
    id: UUID
    user_id: UUID
    leave_type_id: UUID
    start_date: date
    end_date: date
    total_days: int
    reason: str | None = None
    status: str
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None


class LeaveBalanceResponse(CamelModel):
    id: UUID
    user_id: UUID
    leave_type_id: UUID
    year: int
    used: float
    remaining: float
    total: float
    # 삭제된 유형의 잔여는 None (None for balances of a deleted leave type)
    leave_type_name: str | None = None
    category: str | None = None


class SetBalanceRequest(CamelModel):
    """잔여 설정 — remaining = max(0, total - used) (Set granted total for a year)."""

    employee_id: UUID
    leave_type_id: UUID
    year: int = Field(ge=2000, le=2100)
    total: float = Field(ge=0)


class InitializeBalancesRequest(CamelModel):
    year: int | None = Field(default=None, ge=2000, le=2100)


class RolloverRequest(CamelModel):
    from_year: int = Field(ge=2000, le=2099)
