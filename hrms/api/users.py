"""사용자 관리 라우터 (User Router — org-scoped listing and activation)."""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, require_admin
from hrms.database import get_db
from hrms.models.enums import UserRole
from hrms.models.user import User
from hrms.schemas.auth import UserResponse
from hrms.schemas.profile import UserStatusUpdate
from hrms.services.user_service import user_service
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()


@router.get("/")
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    role: Annotated[UserRole | None, Query(description="역할 필터")] = None,
    status: Annotated[Literal["active", "inactive"] | None, Query(description="활성 상태 필터")] = None,
) -> dict[str, Any]:
    """조직 사용자 목록 (Paginated users of the caller's organization)."""
    users, total = await user_service.list_users(
        db, current_user.organization_id, role.value if role else None, status, page, limit
    )
    return {
        "success": True,
        "users": [UserResponse.model_validate(u) for u in users],
        **page_meta(total, page, limit),
    }


@router.get("/me")
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return {"success": True, "user": UserResponse.model_validate(current_user)}


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    user: User = await user_service.get_user(db, user_id, current_user.organization_id)
    return {"success": True, "user": UserResponse.model_validate(user)}


@router.patch("/{user_id}/status")
async def update_user_status(
    user_id: UUID,
    data: UserStatusUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """사용자 활성/비활성 전환 — 본인 상태는 변경 불가.

    Activate or deactivate a user. Changing your own status is rejected.
    """
    user: User = await user_service.set_status(db, user_id, data.is_active, current_user, client_ip(request))
    await db.commit()
    message: str = "User activated" if user.is_active else "User deactivated"
    return {"success": True, "message": message, "user": UserResponse.model_validate(user)}
