"""감사 로그 서비스 — 기록 및 조회.

Audit Service — Appends audit entries inside the caller's transaction and
serves filtered audit history.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.audit import AuditLog
from hrms.models.enums import AuditAction
from hrms.repositories.audit_repository import audit_repository
from hrms.utils.exceptions import BadRequestError


def _jsonable(value: Any) -> Any:
    # JSON 컬럼용 변환 (Coerce UUID/date values for the JSON column)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class AuditService:
    """감사 로그 비즈니스 로직 (Audit log business logic)."""

    async def record(
        self,
        db: AsyncSession,
        organization_id: UUID,
        action: AuditAction,
        user_id: UUID | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AuditLog:
        """감사 항목을 추가합니다 (호출자 트랜잭션 내).

        Append one audit entry in the caller's transaction.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Tenant scope)
            action: 액션 태그 (Action tag)
            user_id: 행위자, 시스템 작업은 None (Actor; None for system jobs)
            details: 메타데이터 (Free-form metadata)
            ip_address: 요청 IP (Source IP)
        """
        return await audit_repository.add(
            db,
            organization_id=organization_id,
            action=action.value,
            user_id=user_id,
            details=_jsonable(details or {}),
            ip_address=ip_address,
        )

    async def list_logs(
        self,
        db: AsyncSession,
        organization_id: UUID,
        action: str | None = None,
        user_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[Sequence[AuditLog], int]:
        start = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
        end = datetime.combine(end_date, time.max, tzinfo=timezone.utc) if end_date else None
        return await audit_repository.get_filtered(
            db, organization_id, action=action, user_id=user_id, start=start, end=end, page=page, limit=limit
        )

    async def latest_for_actions(
        self,
        db: AsyncSession,
        organization_id: UUID,
        actions: list[str],
    ) -> Sequence[AuditLog]:
        """지정 액션의 최근 10건 (Latest 10 entries for validated action names).

        Raises:
            BadRequestError: 알 수 없는 액션 (Unknown action name)
        """
        allowed: set[str] = {a.value for a in AuditAction}
        invalid: list[str] = [a for a in actions if a not in allowed]
        if invalid:
            raise BadRequestError(f"Invalid action(s): {', '.join(invalid)}")
        return await audit_repository.get_latest_by_actions(db, organization_id, actions, limit=10)


# 싱글턴 인스턴스 (Singleton instance)
audit_service: AuditService = AuditService()
