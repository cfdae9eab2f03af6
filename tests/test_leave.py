"""휴가 API 테스트 — 잔여 원장, 신청 상태 머신, 이월.

Leave tests — Balance ledger, the PENDING → APPROVED/REJECTED/CANCELLED
state machine, overlap and balance checks, rollover and summaries.
"""

from datetime import date

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.leave import LeaveBalance
from tests.conftest import auth_header

LEAVE = "/api/v1/leave"
YEAR = 2027


async def _set_balance(client: AsyncClient, admin, employee, leave_type, total: float, year: int = YEAR):
    return await client.put(
        f"{LEAVE}/balance",
        json={"employeeId": str(employee.id), "leaveTypeId": str(leave_type.id), "year": year, "total": total},
        headers=auth_header(admin),
    )


async def _apply(client: AsyncClient, user, leave_type, start: str, end: str, reason: str = "Family trip"):
    return await client.post(
        f"{LEAVE}/requests",
        json={"leaveTypeId": str(leave_type.id), "startDate": start, "endDate": end, "reason": reason},
        headers=auth_header(user),
    )


async def _balance(db: AsyncSession, user, leave_type, year: int = YEAR) -> LeaveBalance:
    result = await db.execute(
        select(LeaveBalance)
        .where(
            LeaveBalance.user_id == user.id,
            LeaveBalance.leave_type_id == leave_type.id,
            LeaveBalance.year == year,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


# ===== Balances =====

class TestBalances:
    """잔여 원장 테스트."""

    async def test_set_balance_creates_then_adjusts(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """잔여 설정 — 생성 후 total 변경 시 remaining = total - used."""
        sick = leave_types["Sick Leave"]
        res = await _set_balance(client, admin_user, employee, sick, 10)
        assert res.status_code == 200
        assert res.json()["balance"]["remaining"] == 10
        assert res.json()["balance"]["total"] == 10

        await _apply(client, employee, sick, "2027-02-01", "2027-02-03")
        request_id = (await client.get(f"{LEAVE}/requests/me", headers=auth_header(employee))).json()["leaveRequests"][0]["id"]
        await client.patch(f"{LEAVE}/requests/{request_id}/approve", headers=auth_header(admin_user))

        res = await _set_balance(client, admin_user, employee, sick, 2)
        balance = res.json()["balance"]
        assert balance["used"] == 3
        assert balance["remaining"] == 0

    async def test_set_balance_requires_admin(self, client: AsyncClient, employee, leave_types):
        """직원은 잔여 설정 불가."""
        res = await _set_balance(client, employee, employee, leave_types["Sick Leave"], 5)
        assert res.status_code == 403

    async def test_initialize_is_insert_only(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """초기화 — 기존 행 유지, 연차는 0, 나머지는 한도."""
        year = utcnow().year
        await _set_balance(client, admin_user, employee, leave_types["Sick Leave"], 3, year=year)

        res = await client.post(f"{LEAVE}/balance/initialize", headers=auth_header(admin_user))
        assert res.status_code == 200
        assert res.json()["created"] == 5

        assert (await _balance(db, employee, leave_types["Sick Leave"], year)).remaining == 3
        assert (await _balance(db, employee, leave_types["Annual Leave"], year)).remaining == 0
        assert (await _balance(db, admin_user, leave_types["Casual Leave"], year)).remaining == 7

        res = await client.post(f"{LEAVE}/balance/initialize", headers=auth_header(admin_user))
        assert res.json()["created"] == 0

    async def test_rollover_caps_carry_forward(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """이월 — 연차는 min(전년 잔여, 이월 한도), 나머지는 한도."""
        await _set_balance(client, admin_user, employee, leave_types["Annual Leave"], 10)

        res = await client.post(f"{LEAVE}/balance/rollover", json={"fromYear": YEAR}, headers=auth_header(admin_user))
        assert res.status_code == 200
        assert res.json()["created"] == 6

        assert (await _balance(db, employee, leave_types["Annual Leave"], YEAR + 1)).remaining == 5
        assert (await _balance(db, admin_user, leave_types["Annual Leave"], YEAR + 1)).remaining == 0
        assert (await _balance(db, employee, leave_types["Sick Leave"], YEAR + 1)).remaining == 12

    async def test_my_balances_named(self, client: AsyncClient, admin_user, employee, leave_types):
        """본인 잔여 조회 — 유형 이름 포함."""
        await _set_balance(client, admin_user, employee, leave_types["Casual Leave"], 7)
        res = await client.get(f"{LEAVE}/balance/me", params={"year": YEAR}, headers=auth_header(employee))
        assert res.status_code == 200
        balances = res.json()["balances"]
        assert [b["leaveTypeName"] for b in balances] == ["Casual Leave"]


# ===== Requests =====

class TestLeaveRequests:
    """휴가 신청 상태 머신 테스트."""

    async def test_approve_debits_balance(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """승인 시 잔여 차감, 감사 기록."""
        sick = leave_types["Sick Leave"]
        await _set_balance(client, admin_user, employee, sick, 12)

        res = await _apply(client, employee, sick, "2027-03-01", "2027-03-05")
        assert res.status_code == 201
        request = res.json()["leaveRequest"]
        assert request["status"] == "PENDING"
        assert request["totalDays"] == 5
        assert (await _balance(db, employee, sick)).remaining == 12

        res = await client.patch(f"{LEAVE}/requests/{request['id']}/approve", headers=auth_header(admin_user))
        assert res.status_code == 200
        assert res.json()["leaveRequest"]["status"] == "APPROVED"
        assert res.json()["leaveRequest"]["approvedBy"] == str(admin_user.id)

        balance = await _balance(db, employee, sick)
        assert (balance.used, balance.remaining) == (5, 7)

        res = await client.patch(f"{LEAVE}/requests/{request['id']}/approve", headers=auth_header(admin_user))
        assert res.status_code == 400
        assert (await _balance(db, employee, sick)).remaining == 7

    async def test_insufficient_balance(self, client: AsyncClient, admin_user, employee, leave_types):
        """잔여 부족 시 400."""
        casual = leave_types["Casual Leave"]
        await _set_balance(client, admin_user, employee, casual, 2)
        res = await _apply(client, employee, casual, "2027-04-01", "2027-04-03")
        assert res.status_code == 400
        assert "Insufficient leave balance" in res.json()["message"]

    async def test_approval_rechecks_current_balance(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """승인 시점 잔여로 재검사 — 부족하면 400, 대기 상태 유지."""
        casual = leave_types["Casual Leave"]
        await _set_balance(client, admin_user, employee, casual, 5)
        res = await _apply(client, employee, casual, "2027-04-05", "2027-04-08")
        assert res.status_code == 201
        request_id = res.json()["leaveRequest"]["id"]

        await _set_balance(client, admin_user, employee, casual, 2)
        res = await client.patch(f"{LEAVE}/requests/{request_id}/approve", headers=auth_header(admin_user))
        assert res.status_code == 400
        assert res.json()["message"] == "Insufficient leave balance: 2 day(s) remaining, 4 requested"

        res = await client.get(f"{LEAVE}/requests/me", headers=auth_header(employee))
        assert res.json()["leaveRequests"][0]["status"] == "PENDING"
        balance = await _balance(db, employee, casual)
        assert (balance.used, balance.remaining) == (0, 2)

    async def test_without_balance_row_is_allowed(self, client: AsyncClient, employee, leave_types):
        """잔여 행이 없으면 잔여 검사 생략."""
        res = await _apply(client, employee, leave_types["Casual Leave"], "2027-04-01", "2027-04-03")
        assert res.status_code == 201

    async def test_start_after_end(self, client: AsyncClient, employee, leave_types):
        """시작일이 종료일보다 늦으면 400."""
        res = await _apply(client, employee, leave_types["Sick Leave"], "2027-04-05", "2027-04-01")
        assert res.status_code == 400

    async def test_overlap_rejected(self, client: AsyncClient, employee, leave_types):
        """대기/승인 신청과 기간이 겹치면 거부, 취소된 신청은 무시."""
        sick = leave_types["Sick Leave"]
        first = await _apply(client, employee, sick, "2027-05-10", "2027-05-12")
        res = await _apply(client, employee, sick, "2027-05-12", "2027-05-14")
        assert res.status_code == 400
        assert res.json()["message"] == "Leave request overlaps an existing request"

        await client.patch(f"{LEAVE}/requests/{first.json()['leaveRequest']['id']}/cancel", headers=auth_header(employee))
        res = await _apply(client, employee, sick, "2027-05-12", "2027-05-14")
        assert res.status_code == 201

    async def test_adjacent_ranges_allowed(self, client: AsyncClient, employee, leave_types):
        """인접한 기간은 겹침이 아님, 양 끝 포함 일수 계산."""
        sick = leave_types["Sick Leave"]
        res = await _apply(client, employee, sick, "2024-01-10", "2024-01-12")
        assert res.status_code == 201
        assert res.json()["leaveRequest"]["totalDays"] == 3

        res = await _apply(client, employee, sick, "2024-01-13", "2024-01-14")
        assert res.status_code == 201
        assert res.json()["leaveRequest"]["totalDays"] == 2

    async def test_cancel_owner_only(self, client: AsyncClient, admin_user, employee, leave_types):
        """본인만 취소 가능, 대기 상태만 취소 가능."""
        res = await _apply(client, employee, leave_types["Sick Leave"], "2027-06-01", "2027-06-01")
        request_id = res.json()["leaveRequest"]["id"]

        res = await client.patch(f"{LEAVE}/requests/{request_id}/cancel", headers=auth_header(admin_user))
        assert res.status_code == 403

        res = await client.patch(f"{LEAVE}/requests/{request_id}/cancel", headers=auth_header(employee))
        assert res.status_code == 200
        assert res.json()["leaveRequest"]["status"] == "CANCELLED"

        res = await client.patch(f"{LEAVE}/requests/{request_id}/cancel", headers=auth_header(employee))
        assert res.status_code == 400

    async def test_reject_with_reason(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """반려 — 사유 기록, 잔여 변화 없음."""
        sick = leave_types["Sick Leave"]
        await _set_balance(client, admin_user, employee, sick, 12)
        res = await _apply(client, employee, sick, "2027-07-01", "2027-07-02")
        request_id = res.json()["leaveRequest"]["id"]

        res = await client.patch(
            f"{LEAVE}/requests/{request_id}/reject",
            json={"rejectionReason": "Peak season"},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 200
        assert res.json()["leaveRequest"]["status"] == "REJECTED"
        assert res.json()["leaveRequest"]["rejectionReason"] == "Peak season"
        assert (await _balance(db, employee, sick)).remaining == 12

    async def test_auto_approve_type(self, client: AsyncClient, db: AsyncSession, admin_user, employee, leave_types):
        """자동 승인 유형은 신청 즉시 승인 및 차감."""
        casual = leave_types["Casual Leave"]
        res = await client.patch(
            f"/api/v1/organizations/leave-types/{casual.id}/approval",
            json={"requiresApproval": False, "autoApprove": True},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 200
        await _set_balance(client, admin_user, employee, casual, 7)

        res = await _apply(client, employee, casual, "2027-08-03", "2027-08-04")
        assert res.status_code == 201
        assert res.json()["leaveRequest"]["status"] == "APPROVED"
        assert (await _balance(db, employee, casual)).remaining == 5

    async def test_other_tenant_cannot_approve(self, client: AsyncClient, employee, outsider, leave_types):
        """다른 조직 관리자의 승인은 404."""
        res = await _apply(client, employee, leave_types["Sick Leave"], "2027-09-01", "2027-09-01")
        request_id = res.json()["leaveRequest"]["id"]
        res = await client.patch(f"{LEAVE}/requests/{request_id}/approve", headers=auth_header(outsider))
        assert res.status_code == 404


# ===== Views =====

class TestLeaveViews:
    """휴가자 목록과 요약 테스트."""

    async def test_on_leave(self, client: AsyncClient, admin_user, employee, leave_types):
        """승인된 휴가만 해당 날짜 휴가자로 표시."""
        res = await _apply(client, employee, leave_types["Sick Leave"], "2027-10-04", "2027-10-06")
        request_id = res.json()["leaveRequest"]["id"]

        res = await client.get(f"{LEAVE}/on-leave", params={"date": "2027-10-05"}, headers=auth_header(admin_user))
        assert res.json()["employees"] == []

        await client.patch(f"{LEAVE}/requests/{request_id}/approve", headers=auth_header(admin_user))
        res = await client.get(f"{LEAVE}/on-leave", params={"date": "2027-10-05"}, headers=auth_header(admin_user))
        employees = res.json()["employees"]
        assert len(employees) == 1
        assert employees[0]["email"] == employee.email

    async def test_summary(self, client: AsyncClient, admin_user, employee, leave_types):
        """요약 — 예정 휴가와 사용 합계."""
        year = utcnow().year
        sick = leave_types["Sick Leave"]
        await _set_balance(client, admin_user, employee, sick, 12, year=year)
        start = date(year + 1, 1, 10).isoformat()
        res = await _apply(client, employee, sick, start, start)
        request_id = res.json()["leaveRequest"]["id"]
        await client.patch(f"{LEAVE}/requests/{request_id}/approve", headers=auth_header(admin_user))

        res = await client.get(f"{LEAVE}/summary/me", headers=auth_header(employee))
        assert res.status_code == 200
        summary = res.json()["summary"]
        assert summary["year"] == year
        assert len(summary["upcoming"]) == 1
        assert summary["past"] == []
        assert summary["totalBooked"] == 0

    async def test_summary_other_employee_admin_only(self, client: AsyncClient, employee, admin_user):
        """타인 요약은 관리자만."""
        res = await client.get(f"{LEAVE}/summary/{admin_user.id}", headers=auth_header(employee))
        assert res.status_code == 403
