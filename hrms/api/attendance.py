"""근태 라우터 — 출퇴근, 조회, 관리자 수정.

Attendance Router — Check-in/check-out for the caller, history listing,
today's counts and admin manual edits.
"""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, require_admin
from hrms.database import get_db
from hrms.models.attendance import Attendance
from hrms.models.organization import Organization
from hrms.models.user import User
from hrms.schemas.attendance import AttendanceResponse, AttendanceUpdate
from hrms.services.attendance_service import attendance_service
from hrms.services.organization_service import organization_service
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()


@router.post("/check-in", status_code=status.HTTP_201_CREATED)
async def check_in(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """출근 — 열린 세션이 있으면 거부.

    Open an attendance session. Only one open session per user can exist.
    """
    record: Attendance = await attendance_service.check_in(
        db, current_user, client_ip(request), request.headers.get("user-agent")
    )
    await db.commit()
    return {"success": True, "message": "Checked in successfully", "attendance": AttendanceResponse.model_validate(record)}


@router.post("/check-out")
async def check_out(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    record: Attendance = await attendance_service.check_out(db, current_user, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": "Checked out successfully",
        "attendance": AttendanceResponse.model_validate(record),
    }


@router.get("/me")
async def my_attendance(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    records, total = await attendance_service.list_records(
        db, current_user.organization_id, current_user.id, start_date, end_date, page, limit
    )
    return {
        "success": True,
        "attendance": [AttendanceResponse.model_validate(r) for r in records],
        **page_meta(total, page, limit),
    }


@router.get("/today")
async def today_counts(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """오늘 상태별 근태 건수 (Today's counts per status, in the org timezone)."""
    org: Organization = await organization_service.get(db, current_user.organization_id)
    counts: dict[str, int] = await attendance_service.today_counts(db, org)
    return {"success": True, "counts": counts}


@router.get("/")
async def list_attendance(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    records, total = await attendance_service.list_records(
        db, current_user.organization_id, user_id, start_date, end_date, page, limit
    )
    return {
        "success": True,
        "attendance": [AttendanceResponse.model_validate(r) for r in records],
        **page_meta(total, page, limit),
    }


@router.get("/{attendance_id}")
async def get_attendance(
    attendance_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    record: Attendance = await attendance_service.get_record(db, attendance_id, current_user)
    return {"success": True, "attendance": AttendanceResponse.model_validate(record)}


@router.patch("/{attendance_id}")
async def update_attendance(
    attendance_id: UUID,
    data: AttendanceUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """관리자 수동 수정 — 수동 수정 플래그 설정, 상태는 유지.

    Admin edit of check-in/check-out; marks the record as manually edited.
    """
    record: Attendance = await attendance_service.update_record(
        db, attendance_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {"success": True, "message": "Attendance updated", "attendance": AttendanceResponse.model_validate(record)}
