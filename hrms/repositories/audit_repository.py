"""감사 로그 레포지토리 — 추가 전용.

Audit Log Repository — Append-only inserts and filtered reads.
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.audit import AuditLog
from hrms.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    """감사 로그 레포지토리 (Audit log repository)."""

    def __init__(self) -> None:
        super().__init__(AuditLog)

    async def add(
        self,
        db: AsyncSession,
        organization_id: UUID,
        action: str,
        user_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog:
        entry: AuditLog = AuditLog(
            organization_id=organization_id,
            user_id=user_id,
            action=action,
            details=details or {},
            ip_address=ip_address,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        action: str | None = None,
        user_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        """필터 조건으로 감사 로그를 최신순 조회합니다.

        Paginated audit entries, newest first.
        """
        query: Select = select(AuditLog).where(AuditLog.organization_id == organization_id)
        if action is not None:
            query = query.where(AuditLog.action == action)
        if user_id is not None:
            query = query.where(AuditLog.user_id == user_id)
        if start is not None:
            query = query.where(AuditLog.created_at >= start)
        if end is not None:
            query = query.where(AuditLog.created_at <= end)
        query = query.order_by(AuditLog.created_at.desc())
        return await self.get_paginated(db, query, page, limit)

    async def get_latest_by_actions(
        self,
        db: AsyncSession,
        organization_id: UUID,
        actions: list[str],
        limit: int = 10,
    ) -> Sequence[AuditLog]:
        result = await db.execute(
            select(AuditLog)
            .where(AuditLog.organization_id == organization_id, AuditLog.action.in_(actions))
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 (Singleton instance)
audit_repository: AuditRepository = AuditRepository()
