"""조직 관련 Pydantic 요청/응답 스키마 정의.

Organization request/response schemas: tenant info, working hours,
attendance and leave policies, notification preferences, leave types.
"""

import re
from datetime import datetime
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import EmailStr, Field, field_validator

from hrms.schemas.common import CamelModel

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_WEEK_DAYS = {"MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"}


def _check_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}")
    return value


class OrganizationCreate(CamelModel):
    """조직 생성 요청 (SUPER_ADMIN 전용) (Organization creation request)."""

    name: str = Field(min_length=1)
    timezone: str = "Asia/Kolkata"
    address: str | None = None
    contact_email: EmailStr | None = None
    phone: str | None = None

    @field_validator("timezone")
    @classmethod
    def _valid_timezone(cls, value: str) -> str:
        return _check_timezone(value)


class OrganizationInfoUpdate(CamelModel):
    """조직 기본 정보 수정 — 전달된 필드만 반영 (Partial info update)."""

    name: str | None = Field(default=None, min_length=1)
    timezone: str | None = None
    address: str | None = None
    contact_email: EmailStr | None = None
    phone: str | None = None

    @field_validator("timezone")
    @classmethod
    def _valid_timezone(cls, value: str | None) -> str | None:
        return _check_timezone(value) if value is not None else None


class WorkingHours(CamelModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _hhmm(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError("Time must be HH:MM")
        return value


class WorkingHoursUpdate(CamelModel):
    """근무 시간 및 휴무 요일 수정 (Working hours and week-off days)."""

    working_hours: WorkingHours
    week_off_days: list[str] | None = None

    @field_validator("week_off_days")
    @classmethod
    def _days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        days = [d.upper() for d in value]
        unknown = set(days) - _WEEK_DAYS
        if unknown:
            raise ValueError(f"Unknown week day(s): {', '.join(sorted(unknown))}")
        return days


class AttendancePolicy(CamelModel):
    """근태 정책 (Attendance policy sub-document)."""

    min_hours_per_day: float = Field(default=8, ge=0, le=24)
    late_threshold_minutes: int = Field(default=10, ge=0)
    early_leave_threshold_minutes: int = Field(default=10, ge=0)
    auto_checkout_enabled: bool = True
    allow_remote: bool = False


class LeavePolicy(CamelModel):
    """휴가 정책 — 카테고리별 연간 한도.

    Leave policy. A zero cap removes the corresponding leave type on sync.
    """

    annual_leave: int = Field(default=15, ge=0)
    sick_leave: int = Field(default=12, ge=0)
    casual_leave: int = Field(default=7, ge=0)
    maternity_leave: int = Field(default=0, ge=0)
    paternity_leave: int = Field(default=0, ge=0)
    unpaid_leave: int = Field(default=0, ge=0)
    carry_forward_limit: int = Field(default=5, ge=0)
    min_notice_days: int = Field(default=1, ge=0)
    max_consecutive_days: int = Field(default=10, ge=0)


class NotificationPreferencesUpdate(CamelModel):
    """알림 설정 — 채널별 부분 병합 (Per-channel partial merge)."""

    email: dict[str, bool] | None = None
    in_app: dict[str, bool] | None = None


class OrganizationResponse(CamelModel):
    id: UUID
    name: str
    timezone: str
    address: str | None = None
    contact_email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    working_hours: dict[str, Any]
    week_off_days: list[str]
    attendance_policy: dict[str, Any]
    attendance_policy_configured: bool
    leave_policy: dict[str, Any]
    leave_policy_configured: bool
    notification_preferences: dict[str, Any]
    is_active: bool
    created_at: datetime | None = None


class LeaveTypeResponse(CamelModel):
    id: UUID
    name: str
    category: str
    is_paid: bool
    requires_approval: bool
    auto_approve: bool
    max_per_year: int
    carry_forward: bool
    is_active: bool


class LeaveTypeApprovalUpdate(CamelModel):
    """휴가 유형 승인 방식 변경 (Approval mode; synced fields are not editable)."""

    requires_approval: bool | None = None
    auto_approve: bool | None = None
