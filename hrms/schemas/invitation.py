"""초대 스키마 (Invitation request/response schemas)."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from hrms.models.enums import UserRole
from hrms.schemas.common import CamelModel


class InvitationCreate(CamelModel):
    """초대 생성 요청 — ADMIN 또는 EMPLOYEE만 초대 가능.

    Invitation request; only ADMIN or EMPLOYEE roles can be offered.
    """

    email: EmailStr
    role: UserRole = UserRole.EMPLOYEE

    @field_validator("role")
    @classmethod
    def _invitable(cls, value: UserRole) -> UserRole:
        if value not in (UserRole.ADMIN, UserRole.EMPLOYEE):
            raise ValueError("Role must be ADMIN or EMPLOYEE")
        return value


class InvitationAccept(CamelModel):
    token: str
    password: str = Field(min_length=8)
    name: str = Field(min_length=1)


class InvitationResponse(CamelModel):
    id: UUID
    email: str
    role: str
    expires_at: datetime
    accepted: bool
    accepted_at: datetime | None = None
    created_at: datetime | None = None
