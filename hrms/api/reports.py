"""근태 리포트 라우터 (Attendance Report Router — daily, weekly, monthly)."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import require_admin
from hrms.database import get_db, utcnow
from hrms.models.organization import Organization
from hrms.models.user import User
from hrms.services.organization_service import organization_service
from hrms.services.report_service import report_service

router: APIRouter = APIRouter()


@router.get("/daily")
async def daily_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    day: Annotated[date | None, Query(alias="date")] = None,
) -> dict[str, Any]:
    org: Organization = await organization_service.get(db, current_user.organization_id)
    report: dict[str, Any] = await report_service.daily(db, org, day or utcnow().date())
    return {"success": True, "report": report}


@router.get("/weekly")
async def weekly_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
) -> dict[str, Any]:
    """startDate 이전(포함) 일요일부터 7일간 (Seven days from the preceding Sunday)."""
    org: Organization = await organization_service.get(db, current_user.organization_id)
    report: dict[str, Any] = await report_service.weekly(db, org, start_date or utcnow().date())
    return {"success": True, "report": report}


@router.get("/monthly")
async def monthly_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    month: Annotated[int | None, Query()] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    today: date = utcnow().date()
    org: Organization = await organization_service.get(db, current_user.organization_id)
    report: dict[str, Any] = await report_service.monthly(db, org, month or today.month, year or today.year)
    return {"success": True, "report": report}
