"""조직 서비스 — 조직 생성, 정책 관리, 휴가 유형 동기화.

Organization Service — Tenant creation, policy documents with their
one-time configuration locks, notification preferences, logo upload and
the leave-type catalog derived from the leave policy.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.enums import AuditAction, LeaveCategory
from hrms.models.leave import LeaveBalance, LeaveType
from hrms.models.organization import (
    Organization,
    default_attendance_policy,
    default_leave_policy,
    default_notification_preferences,
    default_week_off_days,
    default_working_hours,
)
from hrms.models.user import User
from hrms.repositories.leave_repository import leave_balance_repository, leave_type_repository
from hrms.repositories.organization_repository import organization_repository
from hrms.repositories.user_repository import user_repository
from hrms.schemas.organization import (
    AttendancePolicy,
    LeavePolicy,
    LeaveTypeApprovalUpdate,
    NotificationPreferencesUpdate,
    OrganizationCreate,
    OrganizationInfoUpdate,
    WorkingHoursUpdate,
)
from hrms.services.audit_service import audit_service
from hrms.services.storage_service import StorageService
from hrms.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

POLICY_LOCKED_MESSAGE: str = "Policy locked; contact support"
ALLOWED_LOGO_TYPES: tuple[str, ...] = ("image/png", "image/jpeg", "image/svg+xml", "image/webp")
MAX_LOGO_BYTES: int = 2 * 1024 * 1024


@dataclass(frozen=True)
class LeaveTypeMapping:
    policy_field: str
    name: str
    category: LeaveCategory
    is_paid: bool

    @property
    def carry_forward(self) -> bool:
        return self.category == LeaveCategory.ANNUAL


# 휴가 정책 필드 → 휴가 유형 (Leave-policy field to leave-type catalog entry)
LEAVE_TYPE_MAPPING: tuple[LeaveTypeMapping, ...] = (
    LeaveTypeMapping("annualLeave", "Annual Leave", LeaveCategory.ANNUAL, True),
    LeaveTypeMapping("sickLeave", "Sick Leave", LeaveCategory.MEDICAL, True),
    LeaveTypeMapping("casualLeave", "Casual Leave", LeaveCategory.PERSONAL, True),
    LeaveTypeMapping("maternityLeave", "Maternity Leave", LeaveCategory.MEDICAL, True),
    LeaveTypeMapping("paternityLeave", "Paternity Leave", LeaveCategory.PERSONAL, True),
    LeaveTypeMapping("unpaidLeave", "Unpaid Leave", LeaveCategory.PERSONAL, False),
)


def initial_remaining(leave_type: LeaveType) -> float:
    """신규 잔여 초기값 — 연차는 0, 나머지는 연간 한도.

    Starting remaining days for a fresh balance row: ANNUAL starts at 0,
    every other category at its yearly cap.
    """
    if leave_type.category == LeaveCategory.ANNUAL.value:
        return 0
    return float(leave_type.max_per_year)


class OrganizationService:
    """조직 관련 비즈니스 로직 (Organization business logic)."""

    async def get(self, db: AsyncSession, organization_id: UUID) -> Organization:
        """조직 조회 (Raises NotFoundError when absent)."""
        org: Organization | None = await organization_repository.get_by_id(db, organization_id)
        if org is None:
            raise NotFoundError("Organization not found")
        return org

    async def bootstrap(
        self,
        db: AsyncSession,
        name: str,
        timezone: str = "Asia/Kolkata",
        address: str | None = None,
        contact_email: str | None = None,
        phone: str | None = None,
    ) -> Organization:
        """기본 정책으로 조직을 생성하고 휴가 유형을 도출합니다.

        Create an organization seeded with default policies and derive its
        initial leave-type catalog.
        """
        org: Organization = await organization_repository.create(
            db,
            {
                "name": name,
                "timezone": timezone,
                "address": address,
                "contact_email": contact_email,
                "phone": phone,
                "working_hours": default_working_hours(),
                "week_off_days": default_week_off_days(),
                "attendance_policy": default_attendance_policy(),
                "leave_policy": default_leave_policy(),
                "notification_preferences": default_notification_preferences(),
            },
        )
        await self.sync_leave_types(db, org)
        return org

    async def create(
        self,
        db: AsyncSession,
        data: OrganizationCreate,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        org: Organization = await self.bootstrap(
            db,
            name=data.name,
            timezone=data.timezone,
            address=data.address,
            contact_email=data.contact_email,
            phone=data.phone,
        )
        await audit_service.record(
            db, org.id, AuditAction.ORGANIZATION_CREATED, user_id=actor.id,
            details={"name": org.name}, ip_address=ip_address,
        )
        logger.info("Organization created id=%s by=%s", org.id, actor.id)
        return org

    def policies(self, org: Organization) -> dict[str, Any]:
        return {
            "timezone": org.timezone,
            "workingHours": org.working_hours,
            "weekOffDays": org.week_off_days,
            "attendancePolicy": org.attendance_policy,
            "attendancePolicyConfigured": org.attendance_policy_configured,
            "leavePolicy": org.leave_policy,
            "leavePolicyConfigured": org.leave_policy_configured,
        }

    async def update_info(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: OrganizationInfoUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        org: Organization = await self.get(db, organization_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise BadRequestError("No fields to update")
        org = await organization_repository.update(db, org, changes)
        await audit_service.record(
            db, org.id, AuditAction.ORGANIZATION_INFO_UPDATED, user_id=actor.id,
            details={"fields": sorted(changes)}, ip_address=ip_address,
        )
        return org

    async def update_working_hours(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: WorkingHoursUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        org: Organization = await self.get(db, organization_id)
        changes: dict[str, Any] = {"working_hours": data.working_hours.model_dump()}
        if data.week_off_days is not None:
            changes["week_off_days"] = data.week_off_days
        org = await organization_repository.update(db, org, changes)
        await audit_service.record(
            db, org.id, AuditAction.WORKING_HOURS_UPDATED, user_id=actor.id,
            details={"workingHours": org.working_hours, "weekOffDays": org.week_off_days},
            ip_address=ip_address,
        )
        return org

    async def update_attendance_policy(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: AttendancePolicy,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        """근태 정책 최초 설정 — 이후 변경 불가.

        Set the attendance policy once. Any later write is rejected
        regardless of role.

        Raises:
            ForbiddenError: 이미 설정됨 (Policy locked)
        """
        org: Organization = await self.get(db, organization_id)
        if org.attendance_policy_configured:
            raise ForbiddenError(POLICY_LOCKED_MESSAGE)

        policy: dict[str, Any] = data.model_dump(by_alias=True)
        org = await organization_repository.update(
            db, org, {"attendance_policy": policy, "attendance_policy_configured": True}
        )
        await audit_service.record(
            db, org.id, AuditAction.ATTENDANCE_POLICY_UPDATED, user_id=actor.id,
            details=policy, ip_address=ip_address,
        )
        return org

    async def update_leave_policy(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: LeavePolicy,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        """휴가 정책 최초 설정 + 휴가 유형 동기화.

        Set the leave policy once, then synchronize the leave-type catalog
        and pre-create the current year's balances.

        Raises:
            ForbiddenError: 이미 설정됨 (Policy locked)
        """
        org: Organization = await self.get(db, organization_id)
        if org.leave_policy_configured:
            raise ForbiddenError(POLICY_LOCKED_MESSAGE)

        policy: dict[str, Any] = data.model_dump(by_alias=True)
        org = await organization_repository.update(
            db, org, {"leave_policy": policy, "leave_policy_configured": True}
        )
        leave_types: list[LeaveType] = await self.sync_leave_types(db, org)
        created: int = await self.precreate_balances(db, org.id)

        await audit_service.record(
            db, org.id, AuditAction.LEAVE_POLICY_UPDATED, user_id=actor.id,
            details={"policy": policy, "leaveTypes": len(leave_types), "balancesCreated": created},
            ip_address=ip_address,
        )
        return org

    async def update_notification_preferences(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: NotificationPreferencesUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """채널별 부분 병합 (Merge the given channel flags into the stored tree)."""
        org: Organization = await self.get(db, organization_id)
        merged: dict[str, Any] = {k: dict(v) for k, v in (org.notification_preferences or {}).items()}
        incoming: dict[str, Any] = data.model_dump(by_alias=True, exclude_none=True)
        for channel, flags in incoming.items():
            merged.setdefault(channel, {}).update(flags)

        org = await organization_repository.update(db, org, {"notification_preferences": merged})
        await audit_service.record(
            db, org.id, AuditAction.NOTIFICATION_PREFERENCES_UPDATED, user_id=actor.id,
            details=incoming, ip_address=ip_address,
        )
        return org.notification_preferences

    async def update_logo(
        self,
        db: AsyncSession,
        organization_id: UUID,
        storage: StorageService,
        data: bytes,
        filename: str,
        content_type: str,
        actor: User,
        ip_address: str | None = None,
    ) -> Organization:
        """로고 업로드 — 기존 로고는 교체 후 삭제.

        Upload a new logo and delete the previous object.

        Raises:
            BadRequestError: 이미지가 아니거나 너무 큼 (Not an image or too large)
        """
        if content_type not in ALLOWED_LOGO_TYPES:
            raise BadRequestError("Logo must be a PNG, JPEG, SVG or WebP image")
        if not data:
            raise BadRequestError("Logo file is empty")
        if len(data) > MAX_LOGO_BYTES:
            raise BadRequestError("Logo must be 2MB or smaller")

        org: Organization = await self.get(db, organization_id)
        previous_key: str | None = org.logo_key

        key, url = storage.upload(data, filename, content_type, folder=f"logos/{org.id}")
        org = await organization_repository.update(db, org, {"logo_key": key, "logo_url": url})
        if previous_key:
            storage.delete(previous_key)

        await audit_service.record(
            db, org.id, AuditAction.LOGO_UPDATED, user_id=actor.id,
            details={"logoUrl": url}, ip_address=ip_address,
        )
        return org

    async def list_leave_types(self, db: AsyncSession, organization_id: UUID) -> Sequence[LeaveType]:
        return await leave_type_repository.get_by_org(db, organization_id)

    async def update_leave_type_approval(
        self,
        db: AsyncSession,
        organization_id: UUID,
        leave_type_id: UUID,
        data: LeaveTypeApprovalUpdate,
        actor: User,
        ip_address: str | None = None,
    ) -> LeaveType:
        leave_type: LeaveType | None = await leave_type_repository.get_by_id(db, leave_type_id, organization_id)
        if leave_type is None:
            raise NotFoundError("Leave type not found")
        changes: dict[str, Any] = data.model_dump(exclude_none=True)
        if not changes:
            raise BadRequestError("No fields to update")

        leave_type = await leave_type_repository.update(db, leave_type, changes)
        await audit_service.record(
            db, organization_id, AuditAction.UPDATE_LEAVE_TYPE, user_id=actor.id,
            details={"leaveTypeId": leave_type.id, **data.model_dump(by_alias=True, exclude_none=True)},
            ip_address=ip_address,
        )
        return leave_type

    async def initialize_leave_types(
        self,
        db: AsyncSession,
        organization_id: UUID,
        actor: User,
        ip_address: str | None = None,
    ) -> list[LeaveType]:
        """현재 정책으로 휴가 유형과 잔여를 재동기화 (Re-run sync from the stored policy)."""
        org: Organization = await self.get(db, organization_id)
        leave_types: list[LeaveType] = await self.sync_leave_types(db, org)
        created: int = await self.precreate_balances(db, org.id)
        await audit_service.record(
            db, org.id, AuditAction.INITIALIZE_LEAVE_TYPES, user_id=actor.id,
            details={"leaveTypes": [lt.name for lt in leave_types], "balancesCreated": created},
            ip_address=ip_address,
        )
        return leave_types

    async def sync_leave_types(self, db: AsyncSession, org: Organization) -> list[LeaveType]:
        """휴가 정책으로부터 휴가 유형을 동기화합니다.

        For each mapping: a zero cap deletes the leave type (its balances
        stay behind); otherwise name, category, paid flag, carry-forward and
        cap are upserted. Approval mode is never touched.

        Returns:
            list[LeaveType]: 동기화 후 남은 유형 (Leave types present after sync)
        """
        policy: dict[str, Any] = org.leave_policy or {}
        synced: list[LeaveType] = []

        for mapping in LEAVE_TYPE_MAPPING:
            cap: int = int(policy.get(mapping.policy_field) or 0)
            existing: LeaveType | None = await leave_type_repository.get_by_name(db, org.id, mapping.name)

            if cap == 0:
                if existing is not None:
                    await leave_type_repository.delete(db, existing.id, org.id)
                    logger.info("Leave type removed org=%s name=%s", org.id, mapping.name)
                continue

            values: dict[str, Any] = {
                "name": mapping.name,
                "category": mapping.category.value,
                "is_paid": mapping.is_paid,
                "carry_forward": mapping.carry_forward,
                "max_per_year": cap,
                "is_active": True,
            }
            if existing is None:
                synced.append(await leave_type_repository.create(db, {"organization_id": org.id, **values}))
            else:
                synced.append(await leave_type_repository.update(db, existing, values))

        return synced

    async def precreate_balances(
        self,
        db: AsyncSession,
        organization_id: UUID,
        year: int | None = None,
    ) -> int:
        """활성 사용자 × 휴가 유형 잔여 행을 생성합니다 (기존 행은 유지).

        Insert a balance row for every active user and leave type that has
        none for the year. Existing rows are never overwritten.

        Returns:
            int: 생성된 행 수 (Number of rows inserted)
        """
        year = year or utcnow().year
        users: Sequence[User] = await user_repository.get_active_users(db, organization_id)
        leave_types: Sequence[LeaveType] = await leave_type_repository.get_by_org(db, organization_id)
        existing: set[tuple[UUID, UUID]] = await leave_balance_repository.get_keys_for_year(
            db, organization_id, year
        )

        created: int = 0
        for user in users:
            for leave_type in leave_types:
                if (user.id, leave_type.id) in existing:
                    continue
                db.add(
                    LeaveBalance(
                        organization_id=organization_id,
                        user_id=user.id,
                        leave_type_id=leave_type.id,
                        year=year,
                        used=0,
                        remaining=initial_remaining(leave_type),
                    )
                )
                created += 1

        if created:
            await db.flush()
        return created


# 싱글턴 인스턴스 (Singleton instance)
organization_service: OrganizationService = OrganizationService()
