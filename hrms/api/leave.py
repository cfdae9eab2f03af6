"""휴가 라우터 — 잔여 원장, 휴가 신청, 승인/반려, 요약.

Leave Router — Balance ledger (view, set, initialize, rollover), leave
requests and their approval workflow, on-leave listing and summaries.
"""

from datetime import date
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, require_admin
from hrms.database import get_db, utcnow
from hrms.models.leave import LeaveBalance, LeaveRequest
from hrms.models.user import User
from hrms.schemas.leave import (
    InitializeBalancesRequest,
    LeaveBalanceResponse,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
    RolloverRequest,
    SetBalanceRequest,
)
from hrms.services.leave_service import leave_service
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()

RequestStatus = Literal["PENDING", "APPROVED", "REJECTED", "CANCELLED"]


def _summary_response(summary: dict[str, Any]) -> dict[str, Any]:
    return {
        **summary,
        "upcoming": [LeaveRequestResponse.model_validate(r) for r in summary["upcoming"]],
        "past": [LeaveRequestResponse.model_validate(r) for r in summary["past"]],
    }


# ── 잔여 (Balances) ─────────────────────────────────────


@router.get("/balance/me")
async def my_balances(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    balances = await leave_service.get_balances(db, current_user.id, current_user.organization_id, year)
    return {"success": True, "year": year or utcnow().year, "balances": balances}


@router.get("/balance/employee/{employee_id}")
async def employee_balances(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    balances = await leave_service.get_balances(db, employee_id, current_user.organization_id, year)
    return {"success": True, "year": year or utcnow().year, "balances": balances}


@router.put("/balance")
async def set_balance(
    data: SetBalanceRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """직원 연간 휴가 부여일 설정 (Set an employee's granted total for a year)."""
    balance: LeaveBalance = await leave_service.set_balance(db, data, current_user, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Leave balance updated", "balance": LeaveBalanceResponse.model_validate(balance)}


@router.post("/balance/initialize")
async def initialize_balances(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    data: InitializeBalancesRequest | None = None,
) -> dict[str, Any]:
    year: int | None = data.year if data else None
    created: int = await leave_service.initialize_balances(db, current_user, year, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Leave balances initialized", "created": created}


@router.post("/balance/rollover")
async def rollover_balances(
    data: RolloverRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """연도 이월 — 다음 해 잔여 생성 (기존 행은 유지).

    Create next-year balances; carry-forward types bring over up to the
    policy's carry-forward limit.
    """
    created: int = await leave_service.rollover_balances(db, data.from_year, current_user, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": f"Leave balances rolled over to {data.from_year + 1}",
        "created": created,
    }


# ── 신청 (Requests) ─────────────────────────────────────


@router.post("/requests", status_code=status.HTTP_201_CREATED)
async def create_request(
    data: LeaveRequestCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """휴가 신청 — 자동 승인 유형은 즉시 차감.

    Submit a leave request. Auto-approve leave types are approved and
    debited immediately.
    """
    leave_request: LeaveRequest = await leave_service.create_request(db, current_user, data, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": "Leave request submitted",
        "leaveRequest": LeaveRequestResponse.model_validate(leave_request),
    }


@router.get("/requests/me")
async def my_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    status: Annotated[RequestStatus | None, Query()] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    requests, total = await leave_service.list_requests(
        db, current_user.organization_id, current_user.id, status, year, page, limit
    )
    return {
        "success": True,
        "leaveRequests": [LeaveRequestResponse.model_validate(r) for r in requests],
        **page_meta(total, page, limit),
    }


@router.patch("/requests/{request_id}/cancel")
async def cancel_request(
    request_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    leave_request: LeaveRequest = await leave_service.cancel_request(db, request_id, current_user, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": "Leave request cancelled",
        "leaveRequest": LeaveRequestResponse.model_validate(leave_request),
    }


@router.get("/requests")
async def list_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    status: Annotated[RequestStatus | None, Query()] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    requests, total = await leave_service.list_requests(
        db, current_user.organization_id, user_id, status, year, page, limit
    )
    return {
        "success": True,
        "leaveRequests": [LeaveRequestResponse.model_validate(r) for r in requests],
        **page_meta(total, page, limit),
    }


@router.get("/requests/employee/{employee_id}")
async def employee_requests(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    status: Annotated[RequestStatus | None, Query()] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    requests, total = await leave_service.list_requests(
        db, current_user.organization_id, employee_id, status, year, page, limit
    )
    return {
        "success": True,
        "leaveRequests": [LeaveRequestResponse.model_validate(r) for r in requests],
        **page_meta(total, page, limit),
    }


@router.patch("/requests/{request_id}/approve")
async def approve_request(
    request_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """휴가 승인 — 잔여 차감과 상태 전이가 함께 처리됨.

    Approve a PENDING request and debit the balance atomically.
    """
    leave_request: LeaveRequest = await leave_service.approve_request(
        db, request_id, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Leave request approved",
        "leaveRequest": LeaveRequestResponse.model_validate(leave_request),
    }


@router.patch("/requests/{request_id}/reject")
async def reject_request(
    request_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    data: LeaveRejectRequest | None = None,
) -> dict[str, Any]:
    reason: str | None = data.rejection_reason if data else None
    leave_request: LeaveRequest = await leave_service.reject_request(
        db, request_id, current_user, reason, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Leave request rejected",
        "leaveRequest": LeaveRequestResponse.model_validate(leave_request),
    }


# ── 조회 (Views) ────────────────────────────────────────


@router.get("/on-leave")
async def on_leave(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    day: Annotated[date | None, Query(alias="date")] = None,
) -> dict[str, Any]:
    """해당 날짜 휴가 중인 직원 (Employees on approved leave on a date)."""
    employees: list[dict[str, Any]] = await leave_service.on_leave(db, current_user.organization_id, day)
    return {"success": True, "date": day or utcnow().date(), "employees": employees}


@router.get("/summary/me")
async def my_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    summary: dict[str, Any] = await leave_service.summary(db, current_user.id, current_user.organization_id, year)
    return {"success": True, "summary": _summary_response(summary)}


@router.get("/summary/{employee_id}")
async def employee_summary(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    summary: dict[str, Any] = await leave_service.summary(db, employee_id, current_user.organization_id, year)
    return {"success": True, "summary": _summary_response(summary)}
