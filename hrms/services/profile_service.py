"""직원 프로필 서비스 — PII 암호화 및 완성도 계산.

Profile Service — Employee profile edits. PAN and Aadhaar are encrypted
with the injected field cipher and never returned; completion is
recomputed from a fixed rule table on every update.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.enums import AuditAction
from hrms.models.user import EmployeeProfile, User
from hrms.repositories.user_repository import employee_profile_repository, user_repository
from hrms.schemas.profile import ProfileCompletion, ProfileResponse, ProfileUpdate
from hrms.services.audit_service import audit_service
from hrms.utils.cipher import FieldCipher
from hrms.utils.exceptions import BadRequestError, NotFoundError

# 섹션별 필수 필드 (Fields that must all be present for a section to count)
COMPLETION_RULES: dict[str, tuple[str, ...]] = {
    "basicInfo": ("full_name", "date_of_birth", "address", "phone", "email"),
    "identityInfo": ("pan_encrypted", "aadhaar_encrypted"),
    "workInfo": ("date_of_joining", "employee_id", "department", "position"),
}


def compute_completion(profile: EmployeeProfile, email: str | None) -> ProfileCompletion:
    """프로필 완성도를 계산합니다.

    ``email`` comes from the owning user and counts toward basicInfo.
    """
    values: dict[str, Any] = {
        field: getattr(profile, field, None)
        for fields in COMPLETION_RULES.values()
        for field in fields
        if field != "email"
    }
    values["email"] = email

    sections: list[str] = [
        section
        for section, fields in COMPLETION_RULES.items()
        if all(values.get(field) not in (None, "") for field in fields)
    ]
    percent: int = round(len(sections) / len(COMPLETION_RULES) * 100)
    return ProfileCompletion(percent=percent, completed_sections=sections, is_completed=percent == 100)


def to_response(profile: EmployeeProfile) -> ProfileResponse:
    return ProfileResponse.model_validate(profile).model_copy(
        update={
            "has_pan": bool(profile.pan_encrypted),
            "has_aadhaar": bool(profile.aadhaar_encrypted),
        }
    )


class ProfileService:
    """직원 프로필 비즈니스 로직 (Employee profile business logic)."""

    async def get_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
    ) -> EmployeeProfile:
        profile: EmployeeProfile | None = await employee_profile_repository.get_by_user(
            db, user_id, organization_id
        )
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def update_me(
        self,
        db: AsyncSession,
        user: User,
        data: ProfileUpdate,
        cipher: FieldCipher,
        ip_address: str | None = None,
    ) -> EmployeeProfile:
        """내 프로필 수정 — 완성도 재계산.

        Apply a partial update, encrypting PAN/Aadhaar, then recompute
        completion.

        Raises:
            BadRequestError: 변경 필드 없음 (Nothing to update)
            NotFoundError: 프로필 없음 (Profile missing)
        """
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise BadRequestError("No fields to update")

        profile: EmployeeProfile = await self.get_for_user(db, user.id, user.organization_id)

        updated_fields: list[str] = sorted(changes)
        pan: str | None = changes.pop("pan", None)
        aadhaar: str | None = changes.pop("aadhaar", None)
        if pan is not None:
            changes["pan_encrypted"] = cipher.encrypt(pan.upper())
        if aadhaar is not None:
            changes["aadhaar_encrypted"] = cipher.encrypt(aadhaar)

        for field, value in changes.items():
            setattr(profile, field, value)

        completion: ProfileCompletion = compute_completion(profile, user.email)
        changes.update(
            completion_percent=completion.percent,
            completed_sections=completion.completed_sections,
            is_completed=completion.is_completed,
        )
        profile = await employee_profile_repository.update(db, profile, changes)

        if "full_name" in changes and changes["full_name"] != user.name:
            await user_repository.update(db, user, {"name": changes["full_name"]})

        await audit_service.record(
            db, user.organization_id, AuditAction.PROFILE_UPDATED, user_id=user.id,
            details={"fields": updated_fields, "completionPercent": completion.percent},
            ip_address=ip_address,
        )
        return profile


# 싱글턴 인스턴스 (Singleton instance)
profile_service: ProfileService = ProfileService()
