"""초대 라우터 — 초대 발송, 검증, 수락, 취소.

Invitation Router — Admins invite by email; invitees validate and accept
with a single-use token (public endpoints).
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, require_admin
from hrms.database import get_db
from hrms.models.user import User
from hrms.schemas.auth import UserResponse
from hrms.schemas.invitation import InvitationAccept, InvitationCreate, InvitationResponse
from hrms.services.invitation_service import invitation_service
from hrms.services.notification_service import notification_service
from hrms.utils.email import EmailSender, get_mailer
from hrms.utils.pagination import page_meta

router: APIRouter = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_invitation(
    data: InvitationCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    mailer: Annotated[EmailSender, Depends(get_mailer)],
) -> dict[str, Any]:
    """초대 생성 후 초대 링크 이메일 발송.

    Create an invitation (7 days) and email the acceptance link.
    """
    invitation, org = await invitation_service.create(db, data, current_user, client_ip(request))
    await db.commit()

    await notification_service.send_invitation_email(mailer, invitation.email, invitation.token, org.name)
    return {
        "success": True,
        "message": "Invitation sent successfully",
        "invitation": InvitationResponse.model_validate(invitation),
    }


@router.get("/validate")
async def validate_invitation(
    token: Annotated[str, Query(min_length=1)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    invitation: dict[str, Any] = await invitation_service.validate(db, token)
    return {"success": True, "invitation": invitation}


@router.post("/accept", status_code=status.HTTP_201_CREATED)
async def accept_invitation(
    data: InvitationAccept,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """초대 수락 — 인증 완료된 사용자와 프로필 생성.

    Accept an invitation, creating a verified user and profile. A token
    can be accepted once.
    """
    user: User = await invitation_service.accept(db, data, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Invitation accepted", "user": UserResponse.model_validate(user)}


@router.get("/status")
async def invitation_status(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    active: int = await invitation_service.count_active(db, current_user.organization_id)
    return {"success": True, "activeInvitations": active}


@router.get("/")
async def list_invitations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    status: Annotated[Literal["active", "expired", "accepted"] | None, Query(description="초대 상태 필터")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> dict[str, Any]:
    invitations, total = await invitation_service.list_invitations(
        db, current_user.organization_id, status, page, limit
    )
    return {
        "success": True,
        "invitations": [InvitationResponse.model_validate(i) for i in invitations],
        **page_meta(total, page, limit),
    }


@router.delete("/{invitation_id}")
async def revoke_invitation(
    invitation_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """미수락 초대 취소 (Revoke an unaccepted invitation)."""
    await invitation_service.revoke(db, invitation_id, current_user, client_ip(request))
    await db.commit()
    return {"success": True, "message": "Invitation revoked"}
