"""초대 레포지토리 — 조직 초대 DB 쿼리.

Invitation Repository — Queries for organization invitations.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.token import Invitation
from hrms.repositories.base import BaseRepository


class InvitationRepository(BaseRepository[Invitation]):
    """초대 레포지토리 (Invitation repository)."""

    def __init__(self) -> None:
        super().__init__(Invitation)

    async def get_by_token(self, db: AsyncSession, token: str) -> Invitation | None:
        result = await db.execute(select(Invitation).where(Invitation.token == token))
        return result.scalar_one_or_none()

    async def get_active_for_email(self, db: AsyncSession, email: str) -> Invitation | None:
        """미수락, 미만료 초대를 조회합니다 (Pending, unexpired invitation for an email)."""
        result = await db.execute(
            select(Invitation).where(
                func.lower(Invitation.email) == email.lower(),
                Invitation.accepted.is_(False),
                Invitation.expires_at > utcnow(),
            )
        )
        return result.scalars().first()

    async def mark_accepted(self, db: AsyncSession, invitation_id: UUID) -> bool:
        """초대를 원자적으로 수락 처리합니다.

        Atomically flip an invitation to accepted. Returns False when it was
        already accepted or has expired.
        """
        now = utcnow()
        result = await db.execute(
            update(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.accepted.is_(False),
                Invitation.expires_at > now,
            )
            .values(accepted=True, accepted_at=now)
        )
        return result.rowcount == 1

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[Invitation], int]:
        """상태 필터로 초대 목록을 조회합니다.

        Paginated invitations filtered by status:
        active (pending, unexpired), expired (pending, past expiry), accepted.
        """
        now = utcnow()
        query: Select = select(Invitation).where(Invitation.organization_id == organization_id)
        if status == "active":
            query = query.where(Invitation.accepted.is_(False), Invitation.expires_at > now)
        elif status == "expired":
            query = query.where(Invitation.accepted.is_(False), Invitation.expires_at <= now)
        elif status == "accepted":
            query = query.where(Invitation.accepted.is_(True))
        query = query.order_by(Invitation.created_at.desc())
        return await self.get_paginated(db, query, page, limit)

    async def count_active(self, db: AsyncSession, organization_id: UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(Invitation).where(
                Invitation.organization_id == organization_id,
                Invitation.accepted.is_(False),
                Invitation.expires_at > utcnow(),
            )
        )
        return result.scalar() or 0


# 싱글턴 인스턴스 (Singleton instance)
invitation_repository: InvitationRepository = InvitationRepository()
