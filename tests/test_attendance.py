"""근태 API 및 자동 퇴근 테스트.

Attendance tests — Status thresholds, one open session per user,
admin edits, tenant/owner visibility and the auto-checkout sweep.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.attendance import Attendance
from hrms.models.audit import AuditLog
from hrms.models.enums import AttendanceStatus
from hrms.services.attendance_service import attendance_service, derive_status
from tests.conftest import auth_header

ATT = "/api/v1/attendance"


async def _reload(db: AsyncSession, attendance_id) -> Attendance:
    result = await db.execute(
        select(Attendance).where(Attendance.id == attendance_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _open_session(db: AsyncSession, user, check_in: datetime) -> Attendance:
    record = Attendance(organization_id=user.organization_id, user_id=user.id, check_in=check_in)
    db.add(record)
    await db.commit()
    return record


class TestDeriveStatus:
    """근무 시간 기반 상태 판정 경계값."""

    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (0, AttendanceStatus.ABSENT),
            (299, AttendanceStatus.ABSENT),
            (300, AttendanceStatus.HALF_DAY),
            (419, AttendanceStatus.HALF_DAY),
            (420, AttendanceStatus.PRESENT),
            (900, AttendanceStatus.PRESENT),
        ],
    )
    def test_thresholds(self, minutes, expected):
        """300분/420분 경계."""
        assert derive_status(minutes) == expected


class TestCheckInOut:
    """출퇴근 API 테스트."""

    async def test_check_in_and_out(self, client: AsyncClient, employee):
        """출근 후 즉시 퇴근 — ABSENT로 종료."""
        res = await client.post(f"{ATT}/check-in", headers={**auth_header(employee), "User-Agent": "pytest-agent"})
        assert res.status_code == 201
        attendance = res.json()["attendance"]
        assert attendance["checkOut"] is None
        assert attendance["deviceInfo"] == "pytest-agent"

        res = await client.post(f"{ATT}/check-out", headers=auth_header(employee))
        assert res.status_code == 200
        closed = res.json()["attendance"]
        assert closed["id"] == attendance["id"]
        assert closed["checkOut"] is not None
        assert closed["status"] == "ABSENT"

    async def test_double_check_in_rejected(self, client: AsyncClient, employee):
        """열린 세션이 있으면 출근 거부."""
        assert (await client.post(f"{ATT}/check-in", headers=auth_header(employee))).status_code == 201
        res = await client.post(f"{ATT}/check-in", headers=auth_header(employee))
        assert res.status_code == 400
        assert res.json()["message"] == "Already checked in. Please check out first."

    async def test_concurrent_check_in_single_winner(self, client: AsyncClient, db: AsyncSession, employee):
        """동시 출근 요청 — 정확히 하나만 성공."""
        responses = await asyncio.gather(
            client.post(f"{ATT}/check-in", headers=auth_header(employee)),
            client.post(f"{ATT}/check-in", headers=auth_header(employee)),
        )
        codes = sorted(r.status_code for r in responses)
        assert codes == [201, 400]

        rows = (await db.execute(select(Attendance).where(Attendance.user_id == employee.id))).scalars().all()
        assert len(rows) == 1

    async def test_check_out_without_session(self, client: AsyncClient, employee):
        """열린 세션 없이 퇴근 시 404."""
        res = await client.post(f"{ATT}/check-out", headers=auth_header(employee))
        assert res.status_code == 404
        assert res.json()["message"] == "No active check-in found"

    async def test_check_in_after_check_out(self, client: AsyncClient, employee):
        """퇴근 후 다시 출근 가능."""
        await client.post(f"{ATT}/check-in", headers=auth_header(employee))
        await client.post(f"{ATT}/check-out", headers=auth_header(employee))
        res = await client.post(f"{ATT}/check-in", headers=auth_header(employee))
        assert res.status_code == 201

        res = await client.get(f"{ATT}/me", headers=auth_header(employee))
        assert res.json()["total"] == 2


class TestAttendanceAccess:
    """조회 권한 및 관리자 수정 테스트."""

    async def test_employee_cannot_view_other_record(self, client: AsyncClient, db: AsyncSession, employee, admin_user):
        """다른 직원의 기록 조회 시 403."""
        record = await _open_session(db, admin_user, datetime.now(timezone.utc) - timedelta(hours=1))
        res = await client.get(f"{ATT}/{record.id}", headers=auth_header(employee))
        assert res.status_code == 403

    async def test_other_tenant_record_not_found(self, client: AsyncClient, db: AsyncSession, employee, outsider):
        """다른 조직의 기록은 존재하지 않는 것으로 처리."""
        record = await _open_session(db, employee, datetime.now(timezone.utc) - timedelta(hours=1))
        res = await client.get(f"{ATT}/{record.id}", headers=auth_header(outsider))
        assert res.status_code == 404

    async def test_list_requires_admin(self, client: AsyncClient, employee):
        """직원은 전체 목록 조회 불가."""
        res = await client.get(f"{ATT}/", headers=auth_header(employee))
        assert res.status_code == 403
        assert res.json()["message"] == "Insufficient permissions"

    async def test_admin_edit_marks_manual(self, client: AsyncClient, db: AsyncSession, employee, admin_user):
        """관리자 수정 — 수동 수정 플래그, 상태 유지, 감사 기록."""
        check_in = datetime(2026, 3, 10, 4, 0, tzinfo=timezone.utc)
        record = await _open_session(db, employee, check_in)

        res = await client.patch(
            f"{ATT}/{record.id}",
            json={"checkOut": "2026-03-10T05:00:00Z"},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 200
        body = res.json()["attendance"]
        assert body["isManualEdit"] is True
        assert body["status"] == "PRESENT"

        logs = (await db.execute(select(AuditLog).where(AuditLog.action == "ATTENDANCE_EDITED"))).scalars().all()
        assert len(logs) == 1

    async def test_admin_edit_rejects_inverted_range(self, client: AsyncClient, db: AsyncSession, employee, admin_user):
        """퇴근이 출근보다 이르면 400."""
        record = await _open_session(db, employee, datetime(2026, 3, 10, 4, 0, tzinfo=timezone.utc))
        res = await client.patch(
            f"{ATT}/{record.id}",
            json={"checkOut": "2026-03-10T03:00:00Z"},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 400

    async def test_today_counts(self, client: AsyncClient, employee, admin_user):
        """오늘 상태별 건수, 모든 상태 키 포함."""
        await client.post(f"{ATT}/check-in", headers=auth_header(employee))
        res = await client.get(f"{ATT}/today", headers=auth_header(admin_user))
        assert res.status_code == 200
        counts = res.json()["counts"]
        assert set(counts) == {s.value for s in AttendanceStatus}
        assert counts["PRESENT"] == 1


class TestAutoCheckout:
    """자동 퇴근 처리 테스트 (조직 시간대 Asia/Kolkata)."""

    # 2026-03-11 06:00 IST
    NOW = datetime(2026, 3, 11, 0, 30, tzinfo=timezone.utc)
    # 2026-03-10 10:00 IST
    CHECK_IN = datetime(2026, 3, 10, 4, 30, tzinfo=timezone.utc)

    async def test_closes_previous_day_session(self, db: AsyncSession, org, employee):
        """전날 열린 세션을 현지 23:59:59.999에 종료."""
        record = await _open_session(db, employee, self.CHECK_IN)

        closed = await attendance_service.auto_checkout(db, self.NOW)
        await db.commit()
        assert closed == 1

        record = await _reload(db, record.id)
        assert record.check_out == datetime(2026, 3, 10, 18, 29, 59, 999000, tzinfo=timezone.utc)
        assert record.status == "PRESENT"
        assert record.is_manual_edit is True

        logs = (await db.execute(select(AuditLog).where(AuditLog.action == "AUTO_CHECK_OUT"))).scalars().all()
        assert len(logs) == 1
        assert logs[0].user_id == employee.id

    async def test_sweep_is_idempotent(self, db: AsyncSession, org, employee):
        """재실행 시 추가 처리 없음."""
        await _open_session(db, employee, self.CHECK_IN)
        assert await attendance_service.auto_checkout(db, self.NOW) == 1
        await db.commit()
        assert await attendance_service.auto_checkout(db, self.NOW) == 0

    async def test_todays_session_left_open(self, db: AsyncSession, org, employee):
        """당일 세션은 유지."""
        record = await _open_session(db, employee, datetime(2026, 3, 11, 0, 0, tzinfo=timezone.utc))
        assert await attendance_service.auto_checkout(db, self.NOW) == 0
        assert (await _reload(db, record.id)).check_out is None

    async def test_disabled_policy_skips_org(self, db: AsyncSession, org, employee):
        """autoCheckoutEnabled=false 조직은 건너뜀."""
        org.attendance_policy = {**org.attendance_policy, "autoCheckoutEnabled": False}
        await db.commit()
        record = await _open_session(db, employee, self.CHECK_IN)

        assert await attendance_service.auto_checkout(db, self.NOW) == 0
        assert (await _reload(db, record.id)).check_out is None
