"""조직 라우터 — 조직 정보, 정책, 알림 설정, 휴가 유형, 로고.

Organization Router — Tenant info, working hours, lock-once attendance and
leave policies, notification preferences, leave types and logo upload.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, require_admin, require_super_admin
from hrms.database import get_db
from hrms.models.organization import Organization
from hrms.models.user import User
from hrms.schemas.organization import (
    AttendancePolicy,
    LeavePolicy,
    LeaveTypeApprovalUpdate,
    LeaveTypeResponse,
    NotificationPreferencesUpdate,
    OrganizationCreate,
    OrganizationInfoUpdate,
    OrganizationResponse,
    WorkingHoursUpdate,
)
from hrms.services.organization_service import organization_service
from hrms.services.storage_service import StorageService, get_storage

router: APIRouter = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_super_admin)],
) -> dict[str, Any]:
    """새 조직을 생성합니다 (SUPER_ADMIN 전용).

    Create an organization seeded with default policies.
    """
    org: Organization = await organization_service.create(db, data, current_user, client_ip(request))
    await db.commit()
    return {
        "success": True,
        "message": "Organization created successfully",
        "organization": OrganizationResponse.model_validate(org),
    }


@router.get("/me")
async def get_my_organization(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    org: Organization = await organization_service.get(db, current_user.organization_id)
    return {"success": True, "organization": OrganizationResponse.model_validate(org)}


@router.get("/policies")
async def get_policies(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """근무 시간, 근태/휴가 정책 및 잠금 상태 조회 (Policies with their lock flags)."""
    org: Organization = await organization_service.get(db, current_user.organization_id)
    return {"success": True, "policies": organization_service.policies(org)}


@router.get("/notifications")
async def get_notification_preferences(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    org: Organization = await organization_service.get(db, current_user.organization_id)
    return {"success": True, "notificationPreferences": org.notification_preferences}


@router.patch("/notifications")
async def update_notification_preferences(
    data: NotificationPreferencesUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    preferences: dict[str, Any] = await organization_service.update_notification_preferences(
        db, current_user.organization_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {"success": True, "message": "Notification preferences updated", "notificationPreferences": preferences}


@router.get("/leave-types")
async def list_leave_types(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    leave_types = await organization_service.list_leave_types(db, current_user.organization_id)
    return {"success": True, "leaveTypes": [LeaveTypeResponse.model_validate(lt) for lt in leave_types]}


@router.post("/leave-types/initialize")
async def initialize_leave_types(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """저장된 휴가 정책으로 유형과 잔여를 재동기화합니다.

    Re-run leave type sync and balance pre-creation from the stored policy.
    """
    leave_types = await organization_service.initialize_leave_types(
        db, current_user.organization_id, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Leave types initialized",
        "leaveTypes": [LeaveTypeResponse.model_validate(lt) for lt in leave_types],
    }


@router.patch("/leave-types/{leave_type_id}/approval")
async def update_leave_type_approval(
    leave_type_id: UUID,
    data: LeaveTypeApprovalUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    leave_type = await organization_service.update_leave_type_approval(
        db, current_user.organization_id, leave_type_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {"success": True, "message": "Leave type updated", "leaveType": LeaveTypeResponse.model_validate(leave_type)}


@router.patch("/info")
async def update_info(
    data: OrganizationInfoUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    org: Organization = await organization_service.update_info(
        db, current_user.organization_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {"success": True, "message": "Organization updated", "organization": OrganizationResponse.model_validate(org)}


@router.patch("/working-hours")
async def update_working_hours(
    data: WorkingHoursUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    org: Organization = await organization_service.update_working_hours(
        db, current_user.organization_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Working hours updated",
        "organization": OrganizationResponse.model_validate(org),
    }


@router.patch("/attendance-policy")
async def update_attendance_policy(
    data: AttendancePolicy,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """근태 정책 설정 — 최초 1회만 가능 (Lock-once attendance policy)."""
    org: Organization = await organization_service.update_attendance_policy(
        db, current_user.organization_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Attendance policy saved",
        "attendancePolicy": org.attendance_policy,
        "configured": org.attendance_policy_configured,
    }


@router.patch("/leave-policy")
async def update_leave_policy(
    data: LeavePolicy,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """휴가 정책 설정 — 최초 1회, 휴가 유형 동기화 포함.

    Lock-once leave policy. Saving also syncs leave types and pre-creates
    the current year's balances.
    """
    org: Organization = await organization_service.update_leave_policy(
        db, current_user.organization_id, data, current_user, client_ip(request)
    )
    await db.commit()
    return {
        "success": True,
        "message": "Leave policy saved",
        "leavePolicy": org.leave_policy,
        "configured": org.leave_policy_configured,
    }


@router.post("/logo")
async def upload_logo(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    storage: Annotated[StorageService, Depends(get_storage)],
    file: Annotated[UploadFile, File(description="로고 이미지 (PNG/JPEG/SVG/WebP, 2MB 이하)")],
) -> dict[str, Any]:
    data: bytes = await file.read()
    org: Organization = await organization_service.update_logo(
        db,
        current_user.organization_id,
        storage,
        data,
        file.filename or "logo",
        file.content_type or "",
        current_user,
        client_ip(request),
    )
    await db.commit()
    return {"success": True, "message": "Logo updated", "logoUrl": org.logo_url}
