"""인증 라우터 — 회원가입, 로그인, 토큰 갱신, 비밀번호 재설정.

Auth Router — Signup, email verification, login/logout, refresh-token
rotation, revoke-all and password reset. Emails are sent after commit.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user
from hrms.database import get_db
from hrms.models.user import User
from hrms.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    UserResponse,
    VerifyEmailRequest,
)
from hrms.services.auth_service import (
    REFRESH_COOKIE,
    auth_service,
    clear_auth_cookies,
    set_auth_cookies,
)
from hrms.services.notification_service import notification_service
from hrms.utils.email import EmailSender, get_mailer

router: APIRouter = APIRouter()


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    """회원가입 — 조직과 첫 사용자 생성 후 인증 코드 발송.

    Create an organization and its first user, then email the
    verification code.
    """
    user, code = await auth_service.signup(db, data)
    access_token, refresh_token = await auth_service.issue_tokens(db, user)
    await db.commit()

    set_auth_cookies(response, access_token, refresh_token)
    await notification_service.send_verification_email(mailer, user.email, code)
    return {
        "success": True,
        "message": "User created successfully. Please verify your email.",
        "user": UserResponse.model_validate(user),
    }


@router.post("/verify-email")
async def verify_email(
    data: VerifyEmailRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    user: User = await auth_service.verify_email(db, data.user_id, data.code)
    await db.commit()

    await notification_service.send_welcome_email(mailer, user.email, user.name)
    return {"success": True, "message": "Email verified successfully", "user": UserResponse.model_validate(user)}


@router.post("/login")
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    """로그인 — 토큰 회전 후 쿠키 설정.

    Login; sets the accessToken/refreshToken cookies.
    """
    ip: str | None = client_ip(request)
    user, access_token, refresh_token = await auth_service.login(db, data, ip_address=ip)
    await db.commit()

    set_auth_cookies(response, access_token, refresh_token)
    await notification_service.send_login_alert_email(mailer, user.email, user.name, ip)
    return {"success": True, "message": "Logged in successfully", "user": UserResponse.model_validate(user)}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    await auth_service.logout(db, request.cookies.get(REFRESH_COOKIE))
    await db.commit()
    clear_auth_cookies(response)
    return {"success": True, "message": "Logged out successfully"}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    data: Annotated[RefreshRequest | None, Body()] = None,
) -> dict[str, Any]:
    """토큰 갱신 — 쿠키 우선, 없으면 body의 refreshToken.

    Rotate the refresh token. The cookie wins over the body field.
    """
    presented: str | None = request.cookies.get(REFRESH_COOKIE) or (data.refresh_token if data else None)
    user, access_token, refresh_token = await auth_service.refresh(db, presented)
    await db.commit()

    set_auth_cookies(response, access_token, refresh_token)
    return {"success": True, "message": "Token refreshed", "user": UserResponse.model_validate(user)}


@router.post("/revoke-all")
async def revoke_all(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    revoked: int = await auth_service.revoke_all(db, current_user)
    await db.commit()
    clear_auth_cookies(response)
    return {"success": True, "message": "All sessions revoked", "revoked": revoked}


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    user, token = await auth_service.forgot_password(db, data.email)
    await db.commit()

    await notification_service.send_password_reset_email(mailer, user.email, token)
    return {"success": True, "message": "Password reset link sent to your email"}


@router.post("/reset-password/{token}")
async def reset_password(
    token: str,
    data: ResetPasswordRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    user: User = await auth_service.reset_password(db, token, data.password, ip_address=client_ip(request))
    await db.commit()

    await notification_service.send_reset_success_email(mailer, user.email)
    return {"success": True, "message": "Password reset successful"}


@router.get("/check-auth")
async def check_auth(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """현재 사용자 확인 (Echo the authenticated user)."""
    return {"success": True, "user": UserResponse.model_validate(current_user)}
