"""급여 라우터 — 급여 구조, 월별 생성, 명세서, 지급 처리.

Payroll Router — Salary structures, monthly generation, payslips,
adjustments and payment.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, is_admin, require_admin
from hrms.database import get_db, utcnow
from hrms.models.payroll import Payroll, SalaryStructure
from hrms.models.user import User
from hrms.schemas.payroll import (
    GeneratePayrollRequest,
    MarkPaidRequest,
    PayrollResponse,
    PayrollUpdate,
    SalaryStructureResponse,
    SalaryStructureUpsert,
)
from hrms.services.payroll_service import payroll_service
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()


# ── 급여 구조 (Salary structures) ────────────────────────


@router.put("/salary-structures")
async def set_salary_structure(
    data: SalaryStructureUpsert,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """급여 구조 설정 — 총액에서 기본급/HRA/기타 수당 계산.

    Upsert an employee's salary structure; the breakdown is derived from
    gross salary.
    """
    structure: SalaryStructure = await payroll_service.set_salary_structure(
        db, data, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Salary structure saved",
        "salaryStructure": SalaryStructureResponse.model_validate(structure),
    }


@router.get("/salary-structures")
async def list_salary_structures(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    structures, total = await payroll_service.list_structures(db, current_user.organization_id, page, limit)
    return {
        "success": True,
        "salaryStructures": [SalaryStructureResponse.model_validate(s) for s in structures],
        **page_meta(total, page, limit),
    }


@router.get("/me/salary-structure")
async def my_salary_structure(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    structure: SalaryStructure = await payroll_service.get_my_structure(db, current_user)
    return {"success": True, "salaryStructure": SalaryStructureResponse.model_validate(structure)}


# ── 급여 (Payrolls) ─────────────────────────────────────


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_payroll(
    data: GeneratePayrollRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """월별 급여 생성 — 이미 있는 직원은 skipped로 보고.

    Generate DRAFT payrolls for every active salary structure. Employees
    that already have one for the period are reported as skipped.
    """
    result: dict[str, Any] = await payroll_service.generate(db, data, current_user, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": f"Generated {result['generatedCount']} payroll(s), skipped {result['skippedCount']}",
        "generated": [PayrollResponse.model_validate(p) for p in result["generated"]],
        "skipped": result["skipped"],
        "generatedCount": result["generatedCount"],
        "skippedCount": result["skippedCount"],
    }


@router.get("/summary")
async def payroll_year_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    year = year or utcnow().year
    summary: list[dict] = await payroll_service.year_summary(db, current_user.organization_id, year)
    return {"success": True, "year": year, "summary": summary}


@router.get("/me/payslips")
async def my_payslips(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    payslips = await payroll_service.my_payslips(db, current_user)
    return {"success": True, "payslips": [PayrollResponse.model_validate(p) for p in payslips]}


@router.get("/payslips/{payroll_id}")
async def get_payslip(
    payroll_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """급여 명세 — 관리자는 조직 전체, 직원은 본인 것만 (Others' payslips are 404)."""
    payroll: Payroll = await payroll_service.get_payslip(db, payroll_id, current_user, is_admin(current_user))
    return {"success": True, "payslip": PayrollResponse.model_validate(payroll)}


@router.get("/")
async def list_payrolls(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    status: Annotated[Literal["DRAFT", "PROCESSED", "PAID"] | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    items, total, totals = await payroll_service.list_payrolls(
        db, current_user.organization_id, month, year, status, page, limit
    )
    return {
        "success": True,
        "payrolls": [PayrollResponse.model_validate(p) for p in items],
        "summary": totals,
        **page_meta(total, page, limit),
    }


@router.patch("/{payroll_id}/mark-paid")
async def mark_paid(
    payroll_id: UUID,
    data: MarkPaidRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    payroll: Payroll = await payroll_service.mark_paid(db, payroll_id, data, current_user, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Payroll marked as paid", "payroll": PayrollResponse.model_validate(payroll)}


@router.patch("/{payroll_id}")
async def update_payroll(
    payroll_id: UUID,
    data: PayrollUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """급여 조정 — 합계 재계산, 지급 완료 건은 403.

    Adjust a payroll; totals are recomputed. PAID payrolls are immutable.
    """
    payroll: Payroll = await payroll_service.update(db, payroll_id, data, current_user, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Payroll updated", "payroll": PayrollResponse.model_validate(payroll)}


@router.delete("/{payroll_id}")
async def delete_payroll(
    payroll_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    await payroll_service.delete(db, payroll_id, current_user, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Payroll deleted"}
