"""직원 프로필 라우터 (Employee Profile Router)."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.api.deps import client_ip, get_current_user, require_admin
from hrms.database import get_db
from hrms.models.user import EmployeeProfile, User
from hrms.schemas.profile import ProfileUpdate
from hrms.services.profile_service import profile_service, to_response
from hrms.utils.cipher import FieldCipher, get_cipher

router: APIRouter = APIRouter()


@router.get("/me")
async def get_my_profile(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    profile: EmployeeProfile = await profile_service.get_for_user(db, current_user.id, current_user.organization_id)
    return {"success": True, "profile": to_response(profile)}


@router.patch("/me")
async def update_my_profile(
    data: ProfileUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    cipher: Annotated[FieldCipher, Depends(get_cipher)],
) -> dict[str, Any]:
    """내 프로필 수정 — PAN/Aadhaar는 암호화 저장, 응답에는 보유 여부만.

    Update my profile. PAN and Aadhaar are stored encrypted and only their
    presence is echoed back.
    """
    profile: EmployeeProfile = await profile_service.update_me(
        db, current_user, data, cipher, client_ip(request)
    )
    await db.commit()
    return {"success": True, "message": "Profile updated successfully", "profile": to_response(profile)}


@router.get("/{user_id}")
async def get_profile(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    profile: EmployeeProfile = await profile_service.get_for_user(db, user_id, current_user.organization_id)
    return {"success": True, "profile": to_response(profile)}
