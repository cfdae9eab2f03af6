"""직원 프로필 및 사용자 관리 스키마.

Employee profile and user management schemas. PAN and Aadhaar are
write-only: responses expose only whether they are on file.
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from hrms.schemas.common import CamelModel


class EmergencyContact(CamelModel):
    name: str | None = None
    phone: str | None = None
    relation: str | None = None


class ProfileUpdate(CamelModel):
    """내 프로필 수정 요청 (Partial profile update)."""

    full_name: str | None = None
    phone: str | None = None
    pan: str | None = Field(default=None, pattern=r"^[A-Za-z]{5}[0-9]{4}[A-Za-z]$")
    aadhaar: str | None = Field(default=None, pattern=r"^[0-9]{12}$")
    address: str | None = None
    emergency_contact: EmergencyContact | None = None
    date_of_joining: date | None = None
    date_of_birth: date | None = None
    department: str | None = None
    position: str | None = None


class ProfileCompletion(CamelModel):
    percent: int
    completed_sections: list[str]
    is_completed: bool


class ProfileResponse(CamelModel):
    """프로필 응답 — 암호화 필드 제외 (Profile without encrypted fields)."""

    id: UUID
    user_id: UUID
    employee_id: str
    full_name: str | None = None
    phone: str | None = None
    address: str | None = None
    emergency_contact: dict[str, Any] | None = None
    date_of_birth: date | None = None
    date_of_joining: date | None = None
    department: str | None = None
    position: str | None = None
    status: str
    has_pan: bool = False
    has_aadhaar: bool = False
    completion_percent: int
    completed_sections: list[str]
    is_completed: bool
    updated_at: datetime | None = None


class UserStatusUpdate(CamelModel):
    is_active: bool
