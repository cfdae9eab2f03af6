"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related request/response schemas: signup, email
verification, login, refresh, password reset, and the user echo.
"""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from hrms.models.enums import UserRole
from hrms.schemas.common import CamelModel


class SignupRequest(CamelModel):
    """회원가입 요청 스키마.

    Signup request. Creates an organization, its first user, the user's
    profile and an email verification code in one transaction.

    Attributes:
        email: 로그인 이메일 (Login email, globally unique)
        password: 비밀번호 (Plain text, bcrypt-hashed on the server)
        organization_name: 조직 이름 (New organization name)
        role: 역할 (SUPER_ADMIN | ADMIN | EMPLOYEE)
        first_name / last_name: 이름 (Name parts; user name is "first last")
    """

    email: EmailStr
    password: str = Field(min_length=6)
    organization_name: str = Field(min_length=1)
    role: UserRole
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class VerifyEmailRequest(CamelModel):
    code: str
    user_id: UUID


class LoginRequest(CamelModel):
    """로그인 요청 스키마 (Login request)."""

    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    """토큰 갱신 요청 — 쿠키가 없을 때만 사용 (Body fallback when no refreshToken cookie)."""

    refresh_token: str | None = None


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=6)


class UserResponse(CamelModel):
    """사용자 응답 스키마 — 비밀번호 해시 제외.

    User response without the credential hash.
    """

    id: UUID
    organization_id: UUID
    name: str
    email: str
    role: str
    is_verified: bool
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None
