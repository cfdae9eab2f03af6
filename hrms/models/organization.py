"""조직 관련 SQLAlchemy ORM 모델 정의.

Organization-related SQLAlchemy ORM model definitions.
The organization is the tenant root and carries its policy sub-documents
as JSON columns, each with a one-time ``configured`` lock where applicable.

Tables:
    - organizations: 최상위 테넌트 (Top-level tenant with policies)
    - counters: 조직별 단조 증가 시퀀스 (Per-organization monotonic sequences)
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow

# PostgreSQL에서는 JSONB, 그 외에는 JSON (JSONB on PostgreSQL, JSON elsewhere)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def default_working_hours() -> dict[str, str]:
    return {"start": "09:00", "end": "18:00"}


def default_week_off_days() -> list[str]:
    return ["SATURDAY", "SUNDAY"]


def default_attendance_policy() -> dict[str, Any]:
    return {
        "minHoursPerDay": 8,
        "lateThresholdMinutes": 10,
        "earlyLeaveThresholdMinutes": 10,
        "autoCheckoutEnabled": True,
        "allowRemote": False,
    }


def default_leave_policy() -> dict[str, int]:
    return {
        "annualLeave": 15,
        "sickLeave": 12,
        "casualLeave": 7,
        "maternityLeave": 0,
        "paternityLeave": 0,
        "unpaidLeave": 0,
        "carryForwardLimit": 5,
        "minNoticeDays": 1,
        "maxConsecutiveDays": 10,
    }


def default_notification_preferences() -> dict[str, dict[str, bool]]:
    channels: dict[str, bool] = {
        "leaveRequests": True,
        "leaveApprovals": True,
        "attendanceAlerts": True,
        "payrollUpdates": True,
    }
    return {"email": dict(channels), "inApp": dict(channels)}


class Organization(Base):
    """조직(테넌트) 모델 — 시스템의 최상위 엔티티.

    Organization (tenant) model. All data is scoped under an organization.

    Attributes:
        name: 조직 이름 (Organization name)
        timezone: IANA 시간대 (IANA timezone, drives the auto-checkout day boundary)
        working_hours: 근무 시간 {start, end} (Working hours as "HH:MM" strings)
        week_off_days: 휴무 요일 목록 (Week-off day names)
        attendance_policy: 근태 정책 (Attendance policy, locked once configured)
        leave_policy: 휴가 정책 (Leave policy, locked once configured)
        notification_preferences: 알림 설정 트리 (Notification preference tree)
        logo_url / logo_key: 로고 URL과 저장소 키 (Logo URL and storage key)
    """

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="Asia/Kolkata")
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    logo_key: Mapped[str | None] = mapped_column(String(512), nullable=True)

    working_hours: Mapped[dict] = mapped_column(JSONType, nullable=False, default=default_working_hours)
    week_off_days: Mapped[list] = mapped_column(JSONType, nullable=False, default=default_week_off_days)

    # 정책 — 최초 설정 후 잠금 (Policies; a configured flag locks further writes)
    attendance_policy: Mapped[dict] = mapped_column(JSONType, nullable=False, default=default_attendance_policy)
    attendance_policy_configured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    leave_policy: Mapped[dict] = mapped_column(JSONType, nullable=False, default=default_leave_policy)
    leave_policy_configured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    notification_preferences: Mapped[dict] = mapped_column(
        JSONType, nullable=False, default=default_notification_preferences
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class Counter(Base):
    """조직별 시퀀스 카운터 — 사번 발급용.

    Per-organization named counter, incremented atomically to mint
    human-readable employee IDs.
    """

    __tablename__ = "counters"
    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_counters_org_name"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
