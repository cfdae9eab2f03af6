"""인증 서비스 — 회원가입, 로그인, 토큰 갱신, 비밀번호 재설정.

Auth Service — Business logic for signup, email verification, login,
refresh-token rotation and password reset. Access tokens are short-lived
JWTs; refresh tokens are opaque random strings stored in the tokens table,
one active refresh session per user.
"""

import logging
import secrets
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.config import settings
from hrms.database import utcnow
from hrms.models.enums import AuditAction, TokenType
from hrms.models.organization import Organization
from hrms.models.token import Token
from hrms.models.user import User
from hrms.repositories.organization_repository import organization_repository
from hrms.repositories.token_repository import token_repository
from hrms.repositories.user_repository import employee_profile_repository, user_repository
from hrms.schemas.auth import LoginRequest, SignupRequest
from hrms.services.audit_service import audit_service
from hrms.services.organization_service import organization_service
from hrms.utils.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from hrms.utils.jwt import create_access_token
from hrms.utils.password import hash_password_async, verify_password_async

logger = logging.getLogger(__name__)

ACCESS_COOKIE: str = "accessToken"
REFRESH_COOKIE: str = "refreshToken"


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """인증 쿠키를 설정합니다 (httpOnly, strict; secure only in production)."""
    secure: bool = settings.is_production
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=secure,
        samesite="strict",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, httponly=True, secure=settings.is_production, samesite="strict")
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=settings.is_production, samesite="strict")


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    """

    def _build_jwt_payload(self, user: User) -> dict[str, str]:
        return {
            "sub": str(user.id),
            "org": str(user.organization_id),
            "role": user.role,
        }

    async def issue_tokens(self, db: AsyncSession, user: User) -> tuple[str, str]:
        """액세스/리프레시 토큰 쌍을 발급합니다.

        Issue an access/refresh pair. Every prior refresh token of the user
        is deleted first (single active refresh session).

        Returns:
            tuple[str, str]: (access_token, refresh_token)
        """
        access_token: str = create_access_token(self._build_jwt_payload(user))
        refresh_token: str = secrets.token_hex(40)

        # 기존 리프레시 토큰 정리 — Drop old refresh tokens
        await token_repository.delete_refresh_tokens(db, user.id)

        expires_at: datetime = utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        await token_repository.create(db, user.id, refresh_token, TokenType.REFRESH_TOKEN, expires_at)
        return access_token, refresh_token

    async def signup(self, db: AsyncSession, data: SignupRequest) -> tuple[User, str]:
        """회원가입 — 조직, 사용자, 프로필, 인증 코드를 한 트랜잭션에 생성.

        Create organization, user, employee profile and verification code in
        the caller's transaction. A duplicate email rolls everything back.

        Returns:
            tuple[User, str]: (생성된 사용자, 인증 코드) (New user and verification code)

        Raises:
            ConflictError: 이미 등록된 이메일 (Email already registered)
        """
        if await user_repository.get_by_email(db, data.email) is not None:
            raise ConflictError("Email already registered")

        password_hash: str = await hash_password_async(data.password)
        full_name: str = f"{data.first_name} {data.last_name}"

        try:
            org: Organization = await organization_service.bootstrap(db, name=data.organization_name)
            user: User = await user_repository.create(
                db,
                {
                    "organization_id": org.id,
                    "name": full_name,
                    "email": data.email.lower(),
                    "password_hash": password_hash,
                    "role": data.role.value,
                    "is_verified": False,
                },
            )
            employee_id: str = await organization_repository.next_employee_id(db, org.id)
            await employee_profile_repository.create(
                db,
                {
                    "user_id": user.id,
                    "organization_id": org.id,
                    "employee_id": employee_id,
                    "full_name": full_name,
                },
            )
        except IntegrityError:
            # 동시 가입 경합 — unique(email)가 최종 판정 (Store constraint lost the race)
            await db.rollback()
            raise ConflictError("Email already registered")

        await organization_service.precreate_balances(db, org.id)

        code: str = str(secrets.randbelow(900000) + 100000)
        await token_repository.create(
            db,
            user.id,
            code,
            TokenType.EMAIL_VERIFICATION,
            utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES),
        )

        await audit_service.record(
            db, org.id, AuditAction.ORGANIZATION_CREATED, user_id=user.id, details={"name": org.name}
        )
        await audit_service.record(
            db, org.id, AuditAction.USER_CREATED, user_id=user.id, details={"email": user.email, "role": user.role}
        )
        logger.info("Signup user=%s org=%s", user.id, org.id)
        return user, code

    async def verify_email(self, db: AsyncSession, user_id: UUID, code: str) -> User:
        """인증 코드를 확인하고 사용자를 인증 상태로 전환합니다.

        Raises:
            BadRequestError: 코드가 잘못되었거나 만료됨 (Invalid or expired code)
        """
        token: Token | None = await token_repository.get_valid(
            db, code, TokenType.EMAIL_VERIFICATION, user_id=user_id
        )
        if token is None or not await token_repository.consume(db, token.id):
            raise BadRequestError("Invalid or expired verification code")

        user: User | None = await user_repository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return await user_repository.update(db, user, {"is_verified": True})

    async def login(self, db: AsyncSession, data: LoginRequest, ip_address: str | None = None) -> tuple[User, str, str]:
        """로그인 — 자격 증명 확인 후 토큰 회전.

        Verify credentials, rotate tokens and stamp last login. Unknown email
        and wrong password produce the same error.

        Raises:
            UnauthorizedError: 잘못된 인증 정보 (Invalid credentials)
            ForbiddenError: 비활성 계정 (Deactivated account)
        """
        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None:
            raise UnauthorizedError("Invalid credentials")

        if not await verify_password_async(data.password, user.password_hash):
            await audit_service.record(
                db, user.organization_id, AuditAction.LOGIN_FAILURE, user_id=user.id, ip_address=ip_address
            )
            # 실패 감사 기록은 남긴다 (Failure audit is kept even though the request fails)
            await db.commit()
            raise UnauthorizedError("Invalid credentials")

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        access_token, refresh_token = await self.issue_tokens(db, user)
        user = await user_repository.update(db, user, {"last_login_at": utcnow()})
        await audit_service.record(
            db, user.organization_id, AuditAction.LOGIN_SUCCESS, user_id=user.id, ip_address=ip_address
        )
        return user, access_token, refresh_token

    async def refresh(self, db: AsyncSession, refresh_token: str | None) -> tuple[User, str, str]:
        """리프레시 토큰 일회성 회전.

        Single-use rotation: the presented token is consumed and a new pair
        is issued.

        Raises:
            UnauthorizedError: 토큰 누락, 사용됨, 만료 (Missing, used or expired token)
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token required")

        token: Token | None = await token_repository.get_valid(db, refresh_token, TokenType.REFRESH_TOKEN)
        if token is None or not await token_repository.consume(db, token.id):
            raise UnauthorizedError("Invalid or expired refresh token")

        user: User | None = await user_repository.get_by_id(db, token.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found or inactive")

        access_token, new_refresh = await self.issue_tokens(db, user)
        return user, access_token, new_refresh

    async def revoke_all(self, db: AsyncSession, user: User) -> int:
        """사용자의 모든 리프레시 토큰 무효화 (Invalidate every outstanding refresh token)."""
        revoked: int = await token_repository.revoke_refresh_tokens(db, user.id)
        logger.info("Revoked %d refresh token(s) for user=%s", revoked, user.id)
        return revoked

    async def logout(self, db: AsyncSession, refresh_token: str | None) -> None:
        if not refresh_token:
            return
        token: Token | None = await token_repository.get_valid(db, refresh_token, TokenType.REFRESH_TOKEN)
        if token is not None:
            await token_repository.consume(db, token.id)

    async def forgot_password(self, db: AsyncSession, email: str) -> tuple[User, str]:
        """비밀번호 재설정 토큰 발급 (1시간 유효).

        Raises:
            NotFoundError: 등록되지 않은 이메일 (Unknown email)
        """
        user: User | None = await user_repository.get_by_email(db, email)
        if user is None:
            raise NotFoundError("User not found")

        token: str = secrets.token_hex(20)
        await token_repository.create(
            db,
            user.id,
            token,
            TokenType.PASSWORD_RESET,
            utcnow() + timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
        )
        return user, token

    async def reset_password(
        self,
        db: AsyncSession,
        token: str,
        password: str,
        ip_address: str | None = None,
    ) -> User:
        """비밀번호 재설정 — 토큰 소모, 리프레시 세션 종료.

        Raises:
            BadRequestError: 토큰이 유효하지 않음 (Invalid or expired reset token)
        """
        record: Token | None = await token_repository.get_valid(db, token, TokenType.PASSWORD_RESET)
        if record is None or not await token_repository.consume(db, record.id):
            raise BadRequestError("Invalid or expired reset token")

        user: User | None = await user_repository.get_by_id(db, record.user_id)
        if user is None:
            raise NotFoundError("User not found")

        user = await user_repository.update(db, user, {"password_hash": await hash_password_async(password)})
        await token_repository.delete_refresh_tokens(db, user.id)
        await audit_service.record(
            db, user.organization_id, AuditAction.PASSWORD_CHANGED, user_id=user.id, ip_address=ip_address
        )
        return user


# 싱글턴 인스턴스 (Singleton instance)
auth_service: AuthService = AuthService()
