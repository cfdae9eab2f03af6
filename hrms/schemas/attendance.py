"""근태 스키마 (Attendance request/response schemas)."""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import field_validator, model_validator

from hrms.schemas.common import CamelModel


class AttendanceResponse(CamelModel):
    id: UUID
    user_id: UUID
    check_in: datetime
    check_out: datetime | None = None
    status: str
    is_manual_edit: bool
    ip_address: str | None = None
    device_info: str | None = None


class AttendanceUpdate(CamelModel):
    """관리자 근태 수정 — 상태는 재계산하지 않음.

    Admin edit of check-in/check-out. Status is not re-derived.
    Naive timestamps are taken as UTC.
    """

    check_in: datetime | None = None
    check_out: datetime | None = None

    @field_validator("check_in", "check_out")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _ordered(self) -> "AttendanceUpdate":
        if self.check_in is None and self.check_out is None:
            raise ValueError("checkIn or checkOut is required")
        if self.check_in and self.check_out and self.check_out < self.check_in:
            raise ValueError("checkOut must be after checkIn")
        return self
