"""사용자 관리 서비스 (User management service).

Org-scoped user listing, lookup and activation status changes.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.enums import AuditAction
from hrms.models.user import User
from hrms.repositories.user_repository import user_repository
from hrms.services.audit_service import audit_service
from hrms.utils.exceptions import BadRequestError, NotFoundError


class UserService:
    """사용자 관리 비즈니스 로직 (User management business logic)."""

    async def list_users(
        self,
        db: AsyncSession,
        organization_id: UUID,
        role: str | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[User], int]:
        is_active: bool | None = None
        if status == "active":
            is_active = True
        elif status == "inactive":
            is_active = False
        return await user_repository.get_filtered(
            db, organization_id, role=role, is_active=is_active, page=page, limit=limit
        )

    async def get_user(self, db: AsyncSession, user_id: UUID, organization_id: UUID) -> User:
        user: User | None = await user_repository.get_by_id(db, user_id, organization_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def set_status(
        self,
        db: AsyncSession,
        user_id: UUID,
        is_active: bool,
        actor: User,
        ip_address: str | None = None,
    ) -> User:
        """사용자 활성/비활성 전환.

        Activate or deactivate a user in the actor's organization.

        Raises:
            BadRequestError: 본인 상태 변경 시도 (Changing your own status)
            NotFoundError: 사용자 없음 또는 다른 조직 (Absent or out of tenant)
        """
        if user_id == actor.id:
            raise BadRequestError("You cannot change your own status")

        user: User = await self.get_user(db, user_id, actor.organization_id)
        user = await user_repository.update(db, user, {"is_active": is_active})

        action: AuditAction = AuditAction.USER_ACTIVATED if is_active else AuditAction.USER_DEACTIVATED
        await audit_service.record(
            db, actor.organization_id, action, user_id=actor.id,
            details={"targetUserId": user.id, "email": user.email}, ip_address=ip_address,
        )
        return user


# 싱글턴 인스턴스 (Singleton instance)
user_service: UserService = UserService()
