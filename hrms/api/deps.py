"""FastAPI 의존성 주입 모듈 — 인증 및 역할 검사.

FastAPI dependency injection module — Authentication and authorization.

Authentication Flow:
    1. accessToken 쿠키를 읽고, 없으면 Authorization: Bearer 헤더 사용
       (Read the accessToken cookie, falling back to a Bearer header)
    2. decode_token()이 JWT 서명, 만료, type="access"를 검증
       (decode_token verifies signature and expiry; type must be "access")
    3. 페이로드의 "sub"로 사용자 조회 (User is fetched by the "sub" claim)

Authorization Flow (require_roles):
    1. 사용자가 없으면 404 (Missing user → 404)
    2. 비활성 계정이면 403 (Deactivated account → 403)
    3. 역할이 허용 목록에 없으면 403 (Role outside the allow-list → 403)
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import get_db
from hrms.models.enums import ADMIN_ROLES, UserRole
from hrms.models.user import User
from hrms.repositories.user_repository import user_repository
from hrms.services.auth_service import ACCESS_COOKIE
from hrms.utils.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from hrms.utils.jwt import decode_token

# 쿠키가 없을 때만 헤더 사용 (Header fallback; auto_error off so cookies can win)
security: HTTPBearer = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str | None:
    """요청 IP — 프록시 헤더 우선 (Client IP, honoring X-Forwarded-For)."""
    forwarded: str | None = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def get_current_user_id(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> UUID:
    """액세스 토큰에서 사용자 ID를 추출합니다.

    Extract the user id from the access token.

    Raises:
        UnauthorizedError: 토큰 누락, 만료, 위조 (Missing, expired or invalid token)
    """
    token: str | None = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise UnauthorizedError("Authentication required")

    try:
        payload: dict = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")
    try:
        return UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedError("Invalid token")


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """인증된 활성 사용자를 반환합니다.

    Raises:
        NotFoundError: 사용자 없음 (User no longer exists)
        ForbiddenError: 비활성 계정 (Account is deactivated)
    """
    user: User | None = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")
    return user


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """역할 허용 목록 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing a role allow-list.

    Args:
        roles: 허용 역할 (Allowed roles)

    Returns:
        FastAPI 의존성 — 인증된 사용자 반환 또는 403
        (Dependency returning the user or raising 403)
    """
    allowed: set[str] = {role.value for role in roles}

    async def _check(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return _check


def is_admin(user: User) -> bool:
    return user.role in {role.value for role in ADMIN_ROLES}


# 편의 의존성 — Pre-configured role dependencies
require_admin = require_roles(*ADMIN_ROLES)
require_super_admin = require_roles(UserRole.SUPER_ADMIN)
