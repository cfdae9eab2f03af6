"""감사 로그 ORM 모델.

Audit log model. Rows are append-only; the application never updates or
deletes them.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Index, String, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow


class AuditLog(Base):
    """감사 로그 테이블.

    Attributes:
        organization_id: 조직 FK (Tenant scope)
        user_id: 행위자 (Actor; None for system jobs)
        action: 액션 태그 (AuditAction value)
        details: 자유 형식 메타데이터, 컬럼명 "metadata" (Free-form metadata)
        ip_address: 요청 IP (Source IP)
    """

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_org_created", "organization_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # "metadata"는 Declarative 예약어 (metadata is reserved on declarative classes)
    details: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
