"""감사 로그 스키마 (Audit log schemas)."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from hrms.schemas.common import CamelModel


class AuditLogResponse(CamelModel):
    id: UUID
    user_id: UUID | None = None
    action: str
    # ORM 속성 details, 응답 키 metadata (ORM attribute "details" serialized as "metadata")
    details: dict[str, Any] = Field(default_factory=dict, serialization_alias="metadata")
    ip_address: str | None = None
    created_at: datetime


class AuditActionsRequest(CamelModel):
    actions: list[str] = Field(min_length=1)
