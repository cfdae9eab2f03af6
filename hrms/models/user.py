"""사용자 및 직원 프로필 ORM 모델.

User and employee profile SQLAlchemy ORM model definitions.

Tables:
    - users: 로그인 계정 (Login identity with tenant membership and role)
    - employee_profiles: 직원 PII와 완성도 (One-to-one profile with encrypted PII)
"""

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, Integer, String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from hrms.database import Base, UTCDateTime, utcnow
from hrms.models.enums import ProfileStatus, UserRole


class User(Base):
    """사용자 계정 모델.

    User account model. Email is globally unique.

    Attributes:
        organization_id: 소속 조직 FK (Tenant membership)
        name: 표시 이름 (Display name)
        email: 로그인 이메일 (Login email, unique)
        password_hash: bcrypt 해시 (Bcrypt credential hash)
        role: 역할 (SUPER_ADMIN | ADMIN | EMPLOYEE)
        is_verified: 이메일 인증 여부 (Email verified flag)
        is_active: 활성 상태 (Active flag; inactive users are rejected by role gates)
        last_login_at: 마지막 로그인 (Last successful login)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)


class EmployeeProfile(Base):
    """직원 프로필 모델 — 사용자와 1:1.

    Employee profile, one-to-one with User. PAN and Aadhaar are stored only
    as ciphertext; completion fields are recomputed on every profile write.
    """

    __tablename__ = "employee_profiles"
    __table_args__ = (
        UniqueConstraint("organization_id", "employee_id", name="uq_employee_profiles_org_employee_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: Mapped[str] = mapped_column(String(20), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # 암호화된 PII (Fernet ciphertext only)
    pan_encrypted: Mapped[str | None] = mapped_column(String(512), nullable=True)
    aadhaar_encrypted: Mapped[str | None] = mapped_column(String(512), nullable=True)
    emergency_contact: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    date_of_joining: Mapped[date | None] = mapped_column(Date, nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ProfileStatus.ACTIVE.value)

    completion_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_sections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
