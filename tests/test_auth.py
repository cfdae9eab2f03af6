"""인증 API 테스트 — 회원가입, 이메일 인증, 로그인, 토큰 회전, 비밀번호 재설정.

Auth API tests — Signup, email verification, login, refresh-token
rotation, logout, revoke-all and password reset.
"""

from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.audit import AuditLog
from hrms.models.enums import TokenType
from hrms.models.leave import LeaveBalance, LeaveType
from hrms.models.token import Token
from hrms.models.user import EmployeeProfile, User
from tests.conftest import PASSWORD, auth_header, create_user, set_cookie

AUTH = "/api/v1/auth"

SIGNUP_BODY = {
    "email": "jane@acme.com",
    "password": "secret1",
    "organizationName": "Jane Co",
    "role": "SUPER_ADMIN",
    "firstName": "Jane",
    "lastName": "Doe",
}


async def _token_for(db: AsyncSession, user_id, token_type: TokenType) -> Token:
    result = await db.execute(
        select(Token)
        .where(Token.user_id == user_id, Token.type == token_type.value)
        .order_by(Token.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def _login(client: AsyncClient, email: str, password: str = PASSWORD):
    return await client.post(f"{AUTH}/login", json={"email": email, "password": password})


# ===== Signup =====

class TestSignup:
    """회원가입 테스트."""

    async def test_signup_creates_org_user_and_profile(self, client: AsyncClient, db: AsyncSession, mailer):
        """회원가입 시 조직, 사용자, 프로필, 인증 코드 생성."""
        res = await client.post(f"{AUTH}/signup", json=SIGNUP_BODY)
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        user = body["user"]
        assert user["name"] == "Jane Doe"
        assert user["isVerified"] is False
        assert "passwordHash" not in user and "password_hash" not in user

        assert set_cookie(res, "accessToken")
        assert set_cookie(res, "refreshToken")

        profile = (await db.execute(select(EmployeeProfile))).scalar_one()
        assert profile.employee_id == "EMP-000001"
        assert profile.full_name == "Jane Doe"

        leave_types = (await db.execute(select(LeaveType))).scalars().all()
        assert {lt.name for lt in leave_types} == {"Annual Leave", "Sick Leave", "Casual Leave"}
        balances = (await db.execute(select(LeaveBalance))).scalars().all()
        assert len(balances) == 3

        actions = {a.action for a in (await db.execute(select(AuditLog))).scalars().all()}
        assert {"ORGANIZATION_CREATED", "USER_CREATED"} <= actions

        tokens = (
            await db.execute(select(Token).where(Token.type == TokenType.EMAIL_VERIFICATION.value))
        ).scalars().all()
        assert len(tokens) == 1
        lifetime = tokens[0].expires_at - tokens[0].created_at
        assert timedelta(minutes=14) < lifetime <= timedelta(minutes=15)

        assert len(mailer.to("jane@acme.com")) == 1

    async def test_signup_duplicate_email(self, client: AsyncClient, employee):
        """이미 등록된 이메일로 가입 시 400."""
        res = await client.post(f"{AUTH}/signup", json={**SIGNUP_BODY, "email": employee.email})
        assert res.status_code == 400
        assert res.json() == {"success": False, "message": "Email already registered"}

    async def test_signup_missing_field(self, client: AsyncClient):
        """필수 필드 누락 시 400 envelope."""
        body = {k: v for k, v in SIGNUP_BODY.items() if k != "lastName"}
        res = await client.post(f"{AUTH}/signup", json=body)
        assert res.status_code == 400
        assert res.json()["success"] is False


# ===== Email Verification =====

class TestVerifyEmail:
    """이메일 인증 테스트."""

    async def test_verify_email_success(self, client: AsyncClient, db: AsyncSession, mailer):
        """올바른 코드로 인증 성공 및 환영 메일 발송."""
        res = await client.post(f"{AUTH}/signup", json=SIGNUP_BODY)
        user_id = res.json()["user"]["id"]
        user = (await db.execute(select(User).where(User.email == "jane@acme.com"))).scalar_one()
        token = await _token_for(db, user.id, TokenType.EMAIL_VERIFICATION)
        assert len(token.token) == 6 and 100000 <= int(token.token) <= 999999

        res = await client.post(f"{AUTH}/verify-email", json={"code": token.token, "userId": user_id})
        assert res.status_code == 200
        assert res.json()["user"]["isVerified"] is True
        assert len(mailer.to("jane@acme.com")) == 2

    async def test_verify_email_wrong_code(self, client: AsyncClient):
        """잘못된 코드로 인증 실패."""
        res = await client.post(f"{AUTH}/signup", json=SIGNUP_BODY)
        user_id = res.json()["user"]["id"]

        res = await client.post(f"{AUTH}/verify-email", json={"code": "000000", "userId": user_id})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid or expired verification code"

    async def test_verify_email_code_single_use(self, client: AsyncClient, db: AsyncSession):
        """같은 코드 재사용 시 실패."""
        res = await client.post(f"{AUTH}/signup", json=SIGNUP_BODY)
        user_id = res.json()["user"]["id"]
        user = (await db.execute(select(User).where(User.email == "jane@acme.com"))).scalar_one()
        token = await _token_for(db, user.id, TokenType.EMAIL_VERIFICATION)

        first = await client.post(f"{AUTH}/verify-email", json={"code": token.token, "userId": user_id})
        second = await client.post(f"{AUTH}/verify-email", json={"code": token.token, "userId": user_id})
        assert first.status_code == 200
        assert second.status_code == 400


# ===== Login =====

class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, db: AsyncSession, employee, mailer):
        """로그인 성공 — 쿠키 설정, 최종 로그인 시각, 감사 기록."""
        res = await _login(client, employee.email)
        assert res.status_code == 200
        assert res.json()["user"]["email"] == employee.email
        assert res.json()["user"]["lastLoginAt"] is not None
        assert set_cookie(res, "accessToken")
        assert set_cookie(res, "refreshToken")

        logs = (await db.execute(select(AuditLog).where(AuditLog.action == "LOGIN_SUCCESS"))).scalars().all()
        assert len(logs) == 1
        assert len(mailer.to(employee.email)) == 1

    async def test_login_wrong_password_audits_failure(self, client: AsyncClient, db: AsyncSession, employee):
        """잘못된 비밀번호 — 401 및 실패 감사 기록 유지."""
        res = await _login(client, employee.email, "wrong-password")
        assert res.status_code == 401
        assert res.json() == {"success": False, "message": "Invalid credentials"}

        logs = (await db.execute(select(AuditLog).where(AuditLog.action == "LOGIN_FAILURE"))).scalars().all()
        assert len(logs) == 1
        assert logs[0].user_id == employee.id

    async def test_login_unknown_email(self, client: AsyncClient, org):
        """존재하지 않는 이메일로 로그인 실패."""
        res = await _login(client, "nobody@acme.com")
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid credentials"

    async def test_login_deactivated(self, client: AsyncClient, db: AsyncSession, org):
        """비활성 계정 로그인 시 403."""
        user = await create_user(db, org, "gone@acme.com", is_active=False)
        res = await _login(client, user.email)
        assert res.status_code == 403
        assert res.json()["message"] == "Account is deactivated"


# ===== Refresh / Logout / Revoke =====

class TestTokenRotation:
    """리프레시 토큰 회전 테스트."""

    async def test_refresh_with_body_rotates(self, client: AsyncClient, employee):
        """body의 refreshToken으로 갱신 — 새 토큰 발급."""
        old = set_cookie(await _login(client, employee.email), "refreshToken")
        client.cookies.clear()

        res = await client.post(f"{AUTH}/refresh", json={"refreshToken": old})
        assert res.status_code == 200
        new = set_cookie(res, "refreshToken")
        assert new and new != old

    async def test_refresh_with_cookie(self, client: AsyncClient, employee):
        """쿠키의 refreshToken으로 갱신."""
        old = set_cookie(await _login(client, employee.email), "refreshToken")
        client.cookies.clear()

        res = await client.post(f"{AUTH}/refresh", headers={"Cookie": f"refreshToken={old}"})
        assert res.status_code == 200

    async def test_refresh_token_single_use(self, client: AsyncClient, employee):
        """사용한 리프레시 토큰 재사용 시 401."""
        old = set_cookie(await _login(client, employee.email), "refreshToken")
        client.cookies.clear()

        assert (await client.post(f"{AUTH}/refresh", json={"refreshToken": old})).status_code == 200
        client.cookies.clear()
        res = await client.post(f"{AUTH}/refresh", json={"refreshToken": old})
        assert res.status_code == 401

    async def test_new_login_invalidates_previous_refresh(self, client: AsyncClient, employee):
        """재로그인 시 이전 리프레시 토큰 폐기."""
        first = set_cookie(await _login(client, employee.email), "refreshToken")
        await _login(client, employee.email)
        client.cookies.clear()

        res = await client.post(f"{AUTH}/refresh", json={"refreshToken": first})
        assert res.status_code == 401

    async def test_refresh_without_token(self, client: AsyncClient):
        """토큰 없이 갱신 요청 시 401."""
        res = await client.post(f"{AUTH}/refresh")
        assert res.status_code == 401
        assert res.json()["message"] == "Refresh token required"

    async def test_logout_consumes_refresh_token(self, client: AsyncClient, employee):
        """로그아웃 후 리프레시 토큰 사용 불가."""
        token = set_cookie(await _login(client, employee.email), "refreshToken")
        client.cookies.clear()

        res = await client.post(f"{AUTH}/logout", headers={"Cookie": f"refreshToken={token}"})
        assert res.status_code == 200
        client.cookies.clear()

        res = await client.post(f"{AUTH}/refresh", json={"refreshToken": token})
        assert res.status_code == 401

    async def test_revoke_all(self, client: AsyncClient, employee):
        """전체 세션 폐기."""
        token = set_cookie(await _login(client, employee.email), "refreshToken")
        client.cookies.clear()

        res = await client.post(f"{AUTH}/revoke-all", headers=auth_header(employee))
        assert res.status_code == 200
        assert res.json()["revoked"] == 1
        client.cookies.clear()

        res = await client.post(f"{AUTH}/refresh", json={"refreshToken": token})
        assert res.status_code == 401


# ===== Password Reset =====

class TestPasswordReset:
    """비밀번호 재설정 테스트."""

    async def test_forgot_password_unknown_email(self, client: AsyncClient, org):
        """등록되지 않은 이메일 — 404."""
        res = await client.post(f"{AUTH}/forgot-password", json={"email": "nobody@acme.com"})
        assert res.status_code == 404

    async def test_reset_flow(self, client: AsyncClient, db: AsyncSession, employee, mailer):
        """재설정 링크 발송, 비밀번호 변경, 토큰 재사용 불가."""
        res = await client.post(f"{AUTH}/forgot-password", json={"email": employee.email})
        assert res.status_code == 200

        token = await _token_for(db, employee.id, TokenType.PASSWORD_RESET)
        assert len(token.token) == 40
        assert f"/reset-password/{token.token}" in mailer.to(employee.email)[-1]["html"]

        res = await client.post(f"{AUTH}/reset-password/{token.token}", json={"password": "brand-new-pass"})
        assert res.status_code == 200

        assert (await _login(client, employee.email)).status_code == 401
        assert (await _login(client, employee.email, "brand-new-pass")).status_code == 200

        res = await client.post(f"{AUTH}/reset-password/{token.token}", json={"password": "another-pass"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid or expired reset token"

        logs = (await db.execute(select(AuditLog).where(AuditLog.action == "PASSWORD_CHANGED"))).scalars().all()
        assert len(logs) == 1


# ===== Check Auth =====

class TestCheckAuth:
    """인증 확인 및 토큰 검증 테스트."""

    async def test_check_auth_with_bearer(self, client: AsyncClient, employee):
        """Bearer 헤더로 인증."""
        res = await client.get(f"{AUTH}/check-auth", headers=auth_header(employee))
        assert res.status_code == 200
        assert res.json()["user"]["id"] == str(employee.id)

    async def test_check_auth_without_token(self, client: AsyncClient):
        """토큰 없이 401."""
        res = await client.get(f"{AUTH}/check-auth")
        assert res.status_code == 401
        assert res.json() == {"success": False, "message": "Authentication required"}

    async def test_check_auth_invalid_token(self, client: AsyncClient):
        """위조 토큰 401."""
        res = await client.get(f"{AUTH}/check-auth", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401
        assert res.json()["message"] == "Invalid token"

    async def test_check_auth_deactivated_user(self, client: AsyncClient, db: AsyncSession, org):
        """비활성 사용자의 유효 토큰 — 403."""
        user = await create_user(db, org, "gone@acme.com", is_active=False)
        res = await client.get(f"{AUTH}/check-auth", headers=auth_header(user))
        assert res.status_code == 403
        assert res.json()["message"] == "Account is deactivated"
