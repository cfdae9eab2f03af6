"""프로필, 사용자 관리, 감사 로그 API 테스트.

Profile, user management and audit log tests.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.user import EmployeeProfile
from hrms.utils.cipher import EncryptionError, FieldCipher, build_cipher, get_cipher
from hrms.utils.exceptions import ConfigurationError
from tests.conftest import auth_header

PROFILE = "/api/v1/profile"
USERS = "/api/v1/users"
AUDIT = "/api/v1/audit"


async def _profile_row(db: AsyncSession, user) -> EmployeeProfile:
    result = await db.execute(
        select(EmployeeProfile)
        .where(EmployeeProfile.user_id == user.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ===== Profile =====

class TestProfile:
    """직원 프로필 테스트."""

    async def test_pan_is_encrypted_and_hidden(self, client: AsyncClient, db: AsyncSession, employee):
        """PAN은 암호화 저장, 응답에는 보유 여부만."""
        res = await client.patch(f"{PROFILE}/me", json={"pan": "abcde1234f"}, headers=auth_header(employee))
        assert res.status_code == 200
        profile = res.json()["profile"]
        assert profile["hasPan"] is True
        assert profile["hasAadhaar"] is False
        assert "pan" not in profile and "panEncrypted" not in profile

        row = await _profile_row(db, employee)
        assert row.pan_encrypted != "ABCDE1234F"
        cipher: FieldCipher = get_cipher()
        assert cipher.decrypt(row.pan_encrypted) == "ABCDE1234F"

    async def test_invalid_pan_format(self, client: AsyncClient, employee):
        """PAN 형식 오류 — 400."""
        res = await client.patch(f"{PROFILE}/me", json={"pan": "12345"}, headers=auth_header(employee))
        assert res.status_code == 400
        assert res.json()["message"].startswith("pan:")

    async def test_completion_sections(self, client: AsyncClient, employee):
        """섹션별 완성도 계산."""
        res = await client.patch(
            f"{PROFILE}/me",
            json={
                "dateOfBirth": "1990-05-01",
                "address": "12 MG Road",
                "phone": "+91-9000000000",
                "dateOfJoining": "2024-01-15",
                "department": "Engineering",
                "position": "Developer",
            },
            headers=auth_header(employee),
        )
        profile = res.json()["profile"]
        assert sorted(profile["completedSections"]) == ["basicInfo", "workInfo"]
        assert profile["completionPercent"] == 67
        assert profile["isCompleted"] is False

        res = await client.patch(
            f"{PROFILE}/me",
            json={"pan": "ABCDE1234F", "aadhaar": "123412341234"},
            headers=auth_header(employee),
        )
        profile = res.json()["profile"]
        assert profile["completionPercent"] == 100
        assert profile["isCompleted"] is True

    async def test_empty_update(self, client: AsyncClient, employee):
        """변경 필드 없음 — 400."""
        res = await client.patch(f"{PROFILE}/me", json={}, headers=auth_header(employee))
        assert res.status_code == 400

    async def test_full_name_syncs_user_name(self, client: AsyncClient, employee):
        """이름 변경 시 사용자 이름도 변경."""
        await client.patch(f"{PROFILE}/me", json={"fullName": "Eve Renamed"}, headers=auth_header(employee))
        res = await client.get(f"{USERS}/me", headers=auth_header(employee))
        assert res.json()["user"]["name"] == "Eve Renamed"

    async def test_admin_reads_profile_in_tenant_only(self, client: AsyncClient, admin_user, employee, outsider):
        """관리자는 같은 조직 프로필만 조회."""
        res = await client.get(f"{PROFILE}/{employee.id}", headers=auth_header(admin_user))
        assert res.status_code == 200
        assert res.json()["profile"]["employeeId"].startswith("EMP-")

        res = await client.get(f"{PROFILE}/{employee.id}", headers=auth_header(outsider))
        assert res.status_code == 404


# ===== Users =====

class TestUsers:
    """사용자 관리 테스트."""

    async def test_list_scoped_to_org(self, client: AsyncClient, admin_user, employee, outsider):
        """목록은 호출자 조직만."""
        res = await client.get(f"{USERS}/", headers=auth_header(admin_user))
        assert res.status_code == 200
        body = res.json()
        emails = {u["email"] for u in body["users"]}
        assert emails == {admin_user.email, employee.email}
        assert body["total"] == 2
        assert body["currentPage"] == 1

    async def test_list_role_filter(self, client: AsyncClient, admin_user, employee):
        """역할 필터."""
        res = await client.get(f"{USERS}/", params={"role": "EMPLOYEE"}, headers=auth_header(admin_user))
        assert [u["email"] for u in res.json()["users"]] == [employee.email]

    async def test_deactivate_blocks_access(self, client: AsyncClient, admin_user, employee):
        """비활성화 후 해당 사용자의 요청 403."""
        res = await client.patch(
            f"{USERS}/{employee.id}/status", json={"isActive": False}, headers=auth_header(admin_user)
        )
        assert res.status_code == 200
        assert res.json()["message"] == "User deactivated"

        res = await client.get(f"{USERS}/me", headers=auth_header(employee))
        assert res.status_code == 403

        res = await client.get(f"{USERS}/", params={"status": "inactive"}, headers=auth_header(admin_user))
        assert [u["email"] for u in res.json()["users"]] == [employee.email]

    async def test_cannot_change_own_status(self, client: AsyncClient, admin_user):
        """본인 상태 변경 불가."""
        res = await client.patch(
            f"{USERS}/{admin_user.id}/status", json={"isActive": False}, headers=auth_header(admin_user)
        )
        assert res.status_code == 400
        assert res.json()["message"] == "You cannot change your own status"

    async def test_other_tenant_user_not_found(self, client: AsyncClient, admin_user, outsider):
        """다른 조직 사용자 조회 — 404."""
        res = await client.get(f"{USERS}/{outsider.id}", headers=auth_header(admin_user))
        assert res.status_code == 404


# ===== Audit =====

class TestAuditLog:
    """감사 로그 조회 테스트."""

    async def test_list_newest_first(self, client: AsyncClient, admin_user, employee):
        """최신순 목록과 액션 필터."""
        await client.patch(f"{USERS}/{employee.id}/status", json={"isActive": False}, headers=auth_header(admin_user))
        await client.patch(f"{USERS}/{employee.id}/status", json={"isActive": True}, headers=auth_header(admin_user))

        res = await client.get(f"{AUDIT}/", headers=auth_header(admin_user))
        assert res.status_code == 200
        actions = [log["action"] for log in res.json()["logs"]]
        assert actions[:2] == ["USER_ACTIVATED", "USER_DEACTIVATED"]
        assert res.json()["logs"][0]["metadata"]["email"] == employee.email

        res = await client.get(f"{AUDIT}/", params={"action": "USER_DEACTIVATED"}, headers=auth_header(admin_user))
        assert res.json()["total"] == 1

    async def test_latest_for_actions(self, client: AsyncClient, admin_user, employee):
        """액션별 최근 기록."""
        await client.patch(f"{USERS}/{employee.id}/status", json={"isActive": False}, headers=auth_header(admin_user))
        res = await client.post(
            f"{AUDIT}/actions", json={"actions": ["USER_DEACTIVATED"]}, headers=auth_header(admin_user)
        )
        assert res.status_code == 200
        assert len(res.json()["logs"]) == 1

    async def test_invalid_action_name(self, client: AsyncClient, admin_user):
        """알 수 없는 액션 — 400."""
        res = await client.post(f"{AUDIT}/actions", json={"actions": ["NOPE"]}, headers=auth_header(admin_user))
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid action(s): NOPE"

    async def test_audit_requires_admin(self, client: AsyncClient, employee):
        """직원은 감사 로그 조회 불가."""
        res = await client.get(f"{AUDIT}/", headers=auth_header(employee))
        assert res.status_code == 403


# ===== Field cipher =====

class TestFieldCipher:
    """PII 필드 암호기 테스트."""

    def test_cipher_built_once_per_settings(self):
        """같은 설정이면 같은 암호기 재사용."""
        assert get_cipher() is get_cipher()
        assert build_cipher("other-secret", "salt") is not get_cipher()

    def test_missing_secret_is_fatal(self):
        """비밀 미설정 — ConfigurationError."""
        with pytest.raises(ConfigurationError):
            build_cipher("", "salt")

    def test_foreign_ciphertext_rejected(self):
        """다른 키로 암호화된 값은 복호화 실패."""
        foreign = build_cipher("other-secret", "salt").encrypt("ABCDE1234F")
        with pytest.raises(EncryptionError):
            get_cipher().decrypt(foreign)
