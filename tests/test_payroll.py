"""급여 API 테스트 — 급여 구조, 생성, 조정, 지급.

Payroll tests — Salary breakdown arithmetic, idempotent monthly
generation, PAID immutability and payslip visibility.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.payroll import Payroll
from hrms.repositories.payroll_repository import payroll_repository
from hrms.services.payroll_service import calculate_breakdown
from tests.conftest import auth_header, create_user

PAY = "/api/v1/payroll"


async def _set_structure(client: AsyncClient, admin, user, gross: float):
    return await client.put(
        f"{PAY}/salary-structures",
        json={"userId": str(user.id), "grossSalary": gross, "bankName": "HDFC", "ifscCode": "HDFC0000001"},
        headers=auth_header(admin),
    )


async def _generate(client: AsyncClient, admin, month: int = 3, year: int = 2027):
    return await client.post(f"{PAY}/generate", json={"month": month, "year": year}, headers=auth_header(admin))


class TestBreakdown:
    """급여 구성 계산 테스트."""

    @pytest.mark.parametrize("gross", [0, 1, 30000, 999999.99, 12345.67])
    def test_parts_sum_to_gross(self, gross):
        """기본급 + HRA + 기타 수당 = 총액."""
        parts = calculate_breakdown(gross)
        assert round(parts["basic"] + parts["hra"] + parts["other_allowances"], 2) == round(gross, 2)

    def test_ratios(self):
        """기본급 40%, HRA 16%, 일급 = 총액 / 30."""
        parts = calculate_breakdown(30000)
        assert parts["basic"] == 12000
        assert parts["hra"] == 4800
        assert parts["other_allowances"] == 13200
        assert parts["per_day_salary"] == 1000

    def test_rounding_remainder(self):
        """반올림 오차는 기타 수당에 흡수."""
        parts = calculate_breakdown(1)
        assert parts["basic"] == 0.4
        assert parts["hra"] == 0.16
        assert parts["other_allowances"] == 0.44


class TestSalaryStructures:
    """급여 구조 API 테스트."""

    async def test_upsert_structure(self, client: AsyncClient, admin_user, employee):
        """생성 후 갱신 — 구성 항목 재계산."""
        res = await _set_structure(client, admin_user, employee, 50000)
        assert res.status_code == 200
        first = res.json()["salaryStructure"]
        assert first["basic"] == 20000

        res = await _set_structure(client, admin_user, employee, 60000)
        second = res.json()["salaryStructure"]
        assert second["id"] == first["id"]
        assert second["hra"] == 9600

        res = await client.get(f"{PAY}/me/salary-structure", headers=auth_header(employee))
        assert res.json()["salaryStructure"]["grossSalary"] == 60000

    async def test_structure_for_other_tenant_user(self, client: AsyncClient, admin_user, outsider):
        """다른 조직 직원에게 급여 구조 설정 불가."""
        res = await _set_structure(client, admin_user, outsider, 50000)
        assert res.status_code == 404

    async def test_my_structure_missing(self, client: AsyncClient, employee):
        """급여 구조 없음 — 404."""
        res = await client.get(f"{PAY}/me/salary-structure", headers=auth_header(employee))
        assert res.status_code == 404


class TestGeneration:
    """월별 급여 생성 테스트."""

    async def test_generate_is_idempotent(self, client: AsyncClient, admin_user, employee):
        """같은 기간 재생성 시 skipped로 보고."""
        await _set_structure(client, admin_user, employee, 30000)
        await _set_structure(client, admin_user, admin_user, 45000)

        res = await _generate(client, admin_user)
        assert res.status_code == 201
        body = res.json()
        assert body["generatedCount"] == 2
        assert body["skippedCount"] == 0
        payroll = next(p for p in body["generated"] if p["userId"] == str(employee.id))
        assert payroll["status"] == "DRAFT"
        assert payroll["netSalary"] == 30000
        assert payroll["totalEarnings"] == 30000

        res = await _generate(client, admin_user)
        body = res.json()
        assert body["generatedCount"] == 0
        assert body["skippedCount"] == 2
        assert body["skipped"][0]["message"] == "Payroll already exists for this period"

    async def test_unique_constraint_skips_lost_race(self, monkeypatch, client: AsyncClient, db: AsyncSession, admin_user, employee):
        """사전 조회를 통과해도 유니크 제약 위반은 해당 직원만 건너뜀."""
        await _set_structure(client, admin_user, employee, 30000)
        await _generate(client, admin_user)

        async def _nothing_generated(*args, **kwargs) -> set:
            return set()

        monkeypatch.setattr(payroll_repository, "get_user_ids_for_period", _nothing_generated)
        res = await _generate(client, admin_user)
        assert res.status_code == 201
        body = res.json()
        assert body["generatedCount"] == 0
        assert body["skippedCount"] == 1
        assert body["skipped"][0]["userId"] == str(employee.id)

        count = await db.scalar(
            select(func.count()).select_from(Payroll).where(
                Payroll.user_id == employee.id, Payroll.month == 3, Payroll.year == 2027
            )
        )
        assert count == 1

    async def test_list_with_totals(self, client: AsyncClient, admin_user, employee):
        """목록 조회 — 합계 포함."""
        await _set_structure(client, admin_user, employee, 30000)
        await _generate(client, admin_user)

        res = await client.get(f"{PAY}/", params={"month": 3, "year": 2027}, headers=auth_header(admin_user))
        assert res.status_code == 200
        body = res.json()
        assert body["total"] == 1
        assert body["summary"]["totalGross"] == 30000
        assert body["summary"]["totalNet"] == 30000


class TestPayrollLifecycle:
    """급여 조정, 지급, 삭제 테스트."""

    async def _draft(self, client: AsyncClient, admin, employee) -> str:
        await _set_structure(client, admin, employee, 30000)
        res = await _generate(client, admin)
        return res.json()["generated"][0]["id"]

    async def test_update_recomputes_net(self, client: AsyncClient, admin_user, employee):
        """조정 시 순지급액 재계산 (LOP = 총액/30 × 일수)."""
        payroll_id = await self._draft(client, admin_user, employee)
        res = await client.patch(
            f"{PAY}/{payroll_id}",
            json={"incentives": 2000, "tdsDeduction": 1500, "lopDays": 2},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 200
        payroll = res.json()["payroll"]
        assert payroll["totalEarnings"] == 32000
        assert payroll["totalDeductions"] == 1500
        assert payroll["netSalary"] == 28500

    async def test_paid_is_immutable(self, client: AsyncClient, admin_user, employee):
        """지급 완료 건은 수정/삭제/재지급 불가."""
        payroll_id = await self._draft(client, admin_user, employee)

        res = await client.patch(
            f"{PAY}/{payroll_id}/mark-paid",
            json={"paidOn": "2027-03-31", "paymentMethod": "BANK_TRANSFER", "transactionId": "TX-1"},
            headers=auth_header(admin_user),
        )
        assert res.status_code == 200
        assert res.json()["payroll"]["status"] == "PAID"
        assert res.json()["payroll"]["paidOn"] == "2027-03-31"

        res = await client.patch(f"{PAY}/{payroll_id}/mark-paid", json={}, headers=auth_header(admin_user))
        assert res.status_code == 400
        assert res.json()["message"] == "Payroll is already marked as paid"

        res = await client.patch(f"{PAY}/{payroll_id}", json={"incentives": 10}, headers=auth_header(admin_user))
        assert res.status_code == 403

        res = await client.delete(f"{PAY}/{payroll_id}", headers=auth_header(admin_user))
        assert res.status_code == 403

    async def test_delete_draft(self, client: AsyncClient, admin_user, employee):
        """미지급 급여 삭제 후 재생성 가능."""
        payroll_id = await self._draft(client, admin_user, employee)
        res = await client.delete(f"{PAY}/{payroll_id}", headers=auth_header(admin_user))
        assert res.status_code == 200

        res = await _generate(client, admin_user)
        assert res.json()["generatedCount"] == 1


class TestPayslips:
    """급여 명세 조회 권한 테스트."""

    async def test_employee_sees_own_payslip_only(self, client: AsyncClient, db, org, admin_user, employee):
        """본인 명세만 조회 가능, 타인 명세는 404."""
        colleague = await create_user(db, org, "colleague@acme.com", name="Cole League")
        await _set_structure(client, admin_user, employee, 30000)
        await _set_structure(client, admin_user, colleague, 40000)
        generated = (await _generate(client, admin_user)).json()["generated"]
        mine = next(p["id"] for p in generated if p["userId"] == str(employee.id))
        theirs = next(p["id"] for p in generated if p["userId"] == str(colleague.id))

        assert (await client.get(f"{PAY}/payslips/{mine}", headers=auth_header(employee))).status_code == 200
        res = await client.get(f"{PAY}/payslips/{theirs}", headers=auth_header(employee))
        assert res.status_code == 404

        res = await client.get(f"{PAY}/payslips/{theirs}", headers=auth_header(admin_user))
        assert res.status_code == 200

        res = await client.get(f"{PAY}/me/payslips", headers=auth_header(employee))
        assert [p["id"] for p in res.json()["payslips"]] == [mine]

    async def test_list_requires_admin(self, client: AsyncClient, employee):
        """직원은 급여 목록 조회 불가."""
        res = await client.get(f"{PAY}/", headers=auth_header(employee))
        assert res.status_code == 403
