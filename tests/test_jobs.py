"""백그라운드 작업과 로깅 미들웨어 테스트.

Background job and request-logging middleware tests.
"""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.jobs import scheduler as scheduler_module
from hrms.middleware.axiom_logging import mask_sensitive
from hrms.models.attendance import Attendance


class TestAutoCheckoutJob:
    """자동 퇴근 스케줄 작업 테스트."""

    # 2026-03-11 06:00 IST, session opened 2026-03-10 10:00 IST
    NOW = datetime(2026, 3, 11, 0, 30, tzinfo=timezone.utc)
    CHECK_IN = datetime(2026, 3, 10, 4, 30, tzinfo=timezone.utc)

    async def test_job_commits_closed_sessions(self, monkeypatch, session_factory, db: AsyncSession, org, employee):
        """작업은 자체 세션으로 처리 후 커밋."""
        monkeypatch.setattr(scheduler_module, "async_session", session_factory)
        monkeypatch.setattr(scheduler_module, "utcnow", lambda: self.NOW)
        record = Attendance(organization_id=org.id, user_id=employee.id, check_in=self.CHECK_IN)
        db.add(record)
        await db.commit()

        assert await scheduler_module.run_auto_checkout() == 1
        assert await scheduler_module.run_auto_checkout() == 0

        result = await db.execute(
            select(Attendance).where(Attendance.id == record.id).execution_options(populate_existing=True)
        )
        assert result.scalar_one().check_out is not None


class TestMasking:
    """로그 마스킹 테스트."""

    @pytest.mark.parametrize("key", ["password", "refreshToken", "pan", "aadhaar", "accountNumber", "ifscCode", "code"])
    def test_sensitive_keys_masked(self, key):
        """민감 필드는 ***로 대체."""
        assert mask_sensitive({key: "value"}) == {key: "***"}

    def test_nested_and_plain_fields(self):
        """중첩 구조 처리, 일반 필드 유지."""
        data = {"email": "a@b.com", "profile": {"pan": "x", "company": "Acme"}, "items": [{"password": "p"}]}
        masked = mask_sensitive(data)
        assert masked["email"] == "a@b.com"
        assert masked["profile"] == {"pan": "***", "company": "Acme"}
        assert masked["items"] == [{"password": "***"}]


class TestHealth:
    async def test_health(self, client: AsyncClient):
        res = await client.get("/health")
        assert res.json() == {"status": "ok"}
