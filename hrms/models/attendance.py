"""근태 관리 SQLAlchemy ORM 모델 정의.

Attendance SQLAlchemy ORM model definitions.
One row per check-in; at most one open row (check_out IS NULL) per user,
enforced by a partial unique index.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, ForeignKey, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow
from hrms.models.enums import AttendanceStatus


class Attendance(Base):
    """근태 기록 모델 — 체크인 1건당 1행.

    Attendance record. Status is derived from worked duration at checkout.

    Attributes:
        check_in: 출근 시각 UTC (Check-in time)
        check_out: 퇴근 시각 UTC, 열린 세션이면 None (None while the session is open)
        status: PRESENT | ABSENT | ON_LEAVE | HALF_DAY
        is_manual_edit: 관리자/자동 수정 여부 (Set by admin edits and the auto-checkout sweep)
        ip_address / device_info: 요청 출처 (Request origin captured at check-in)
    """

    __tablename__ = "attendances"
    __table_args__ = (
        # 사용자당 열린 세션 1개 (One open session per user)
        Index(
            "uq_attendances_open_session",
            "user_id",
            unique=True,
            postgresql_where=text("check_out IS NULL"),
            sqlite_where=text("check_out IS NULL"),
        ),
        Index("ix_attendances_org_check_in", "organization_id", "check_in"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    check_in: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    check_out: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AttendanceStatus.PRESENT.value)
    is_manual_edit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    device_info: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
