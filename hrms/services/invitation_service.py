"""초대 서비스 — 조직 초대 생성, 검증, 수락, 취소.

Invitation Service — Pending membership offers. Acceptance flips the
invitation and creates the user and profile in one transaction.
"""

import logging
import secrets
from datetime import timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.config import settings
from hrms.database import utcnow
from hrms.models.enums import AuditAction
from hrms.models.organization import Organization
from hrms.models.token import Invitation
from hrms.models.user import User
from hrms.repositories.invitation_repository import invitation_repository
from hrms.repositories.organization_repository import organization_repository
from hrms.repositories.user_repository import employee_profile_repository, user_repository
from hrms.schemas.invitation import InvitationAccept, InvitationCreate
from hrms.services.audit_service import audit_service
from hrms.services.organization_service import organization_service
from hrms.utils.exceptions import BadRequestError, ConflictError, NotFoundError
from hrms.utils.password import hash_password_async

logger = logging.getLogger(__name__)

INVALID_INVITATION: str = "Invalid or expired invitation"


class InvitationService:
    """초대 비즈니스 로직 (Invitation business logic)."""

    async def create(
        self,
        db: AsyncSession,
        data: InvitationCreate,
        actor: User,
        ip_address: str | None = None,
    ) -> tuple[Invitation, Organization]:
        """초대를 생성합니다 (7일 유효).

        Raises:
            ConflictError: 이미 가입된 이메일 또는 유효한 초대 존재
                           (Email already registered or already invited)
        """
        email: str = data.email.lower()
        if await user_repository.get_by_email(db, email) is not None:
            raise ConflictError("A user with this email already exists")
        if await invitation_repository.get_active_for_email(db, email) is not None:
            raise ConflictError("An active invitation already exists for this email")

        org: Organization = await organization_service.get(db, actor.organization_id)
        invitation: Invitation = await invitation_repository.create(
            db,
            {
                "organization_id": org.id,
                "email": email,
                "role": data.role.value,
                "token": secrets.token_hex(32),
                "invited_by": actor.id,
                "expires_at": utcnow() + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
            },
        )
        await audit_service.record(
            db, org.id, AuditAction.INVITATION_SENT, user_id=actor.id,
            details={"email": email, "role": invitation.role}, ip_address=ip_address,
        )
        return invitation, org

    async def _get_pending(self, db: AsyncSession, token: str) -> Invitation:
        invitation: Invitation | None = await invitation_repository.get_by_token(db, token)
        if invitation is None or invitation.accepted or invitation.expires_at <= utcnow():
            raise BadRequestError(INVALID_INVITATION)
        return invitation

    async def validate(self, db: AsyncSession, token: str) -> dict[str, Any]:
        invitation: Invitation = await self._get_pending(db, token)
        org: Organization = await organization_service.get(db, invitation.organization_id)
        return {
            "email": invitation.email,
            "role": invitation.role,
            "organizationName": org.name,
            "expiresAt": invitation.expires_at,
        }

    async def accept(
        self,
        db: AsyncSession,
        data: InvitationAccept,
        ip_address: str | None = None,
    ) -> User:
        """초대 수락 — 사용자와 프로필을 생성합니다.

        Accept exactly once: the invitation is flipped with a conditional
        update, so a concurrent second acceptance finds nothing to flip.

        Raises:
            BadRequestError: 유효하지 않거나 이미 수락된 초대 (Invalid, used or expired)
            ConflictError: 이미 가입된 이메일 (Email taken in the meantime)
        """
        invitation: Invitation = await self._get_pending(db, data.token)
        if not await invitation_repository.mark_accepted(db, invitation.id):
            raise BadRequestError(INVALID_INVITATION)

        if await user_repository.get_by_email(db, invitation.email) is not None:
            raise ConflictError("A user with this email already exists")

        password_hash: str = await hash_password_async(data.password)
        try:
            user: User = await user_repository.create(
                db,
                {
                    "organization_id": invitation.organization_id,
                    "name": data.name,
                    "email": invitation.email,
                    "password_hash": password_hash,
                    "role": invitation.role,
                    "is_verified": True,
                },
            )
            employee_id: str = await organization_repository.next_employee_id(db, invitation.organization_id)
            await employee_profile_repository.create(
                db,
                {
                    "user_id": user.id,
                    "organization_id": invitation.organization_id,
                    "employee_id": employee_id,
                    "full_name": data.name,
                },
            )
        except IntegrityError:
            await db.rollback()
            raise ConflictError("A user with this email already exists")

        await organization_service.precreate_balances(db, invitation.organization_id)
        await audit_service.record(
            db, invitation.organization_id, AuditAction.INVITATION_ACCEPTED, user_id=user.id,
            details={"invitationId": invitation.id, "email": user.email, "role": user.role},
            ip_address=ip_address,
        )
        logger.info("Invitation accepted id=%s user=%s", invitation.id, user.id)
        return user

    async def revoke(
        self,
        db: AsyncSession,
        invitation_id: UUID,
        actor: User,
        ip_address: str | None = None,
    ) -> None:
        invitation: Invitation | None = await invitation_repository.get_by_id(
            db, invitation_id, actor.organization_id
        )
        if invitation is None:
            raise NotFoundError("Invitation not found")
        if invitation.accepted:
            raise BadRequestError("Accepted invitations cannot be revoked")

        email: str = invitation.email
        await invitation_repository.delete(db, invitation.id, actor.organization_id)
        await audit_service.record(
            db, actor.organization_id, AuditAction.INVITATION_REVOKED, user_id=actor.id,
            details={"invitationId": invitation_id, "email": email}, ip_address=ip_address,
        )

    async def list_invitations(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Invitation], int]:
        return await invitation_repository.get_filtered(db, organization_id, status=status, page=page, limit=limit)

    async def count_active(self, db: AsyncSession, organization_id: UUID) -> int:
        return await invitation_repository.count_active(db, organization_id)


# 싱글턴 인스턴스 (Singleton instance)
invitation_service: InvitationService = InvitationService()
