"""감사 로그 라우터 (Audit Log Router — read-only history for admins)."""

from datetime import date
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import require_admin
from hrms.database import get_db
from hrms.models.user import User
from hrms.schemas.audit import AuditActionsRequest, AuditLogResponse
from hrms.services.audit_service import audit_service
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()


@router.get("/")
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    action: Annotated[str | None, Query()] = None,
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
) -> dict[str, Any]:
    """조직 감사 로그 목록, 최신순 (Organization audit log, newest first)."""
    logs, total = await audit_service.list_logs(
        db, current_user.organization_id, action, user_id, start_date, end_date, page, limit
    )
    return {
        "success": True,
        "logs": [AuditLogResponse.model_validate(log) for log in logs],
        **page_meta(total, page, limit),
    }


@router.post("/actions")
async def latest_for_actions(
    data: AuditActionsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    logs = await audit_service.latest_for_actions(db, current_user.organization_id, data.actions)
    return {"success": True, "logs": [AuditLogResponse.model_validate(log) for log in logs]}
