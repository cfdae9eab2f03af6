"""사용자 레포지토리 — 사용자 및 직원 프로필 DB 쿼리.

User Repository — Queries for user accounts and employee profiles.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.enums import UserRole
from hrms.models.user import EmployeeProfile, User
from hrms.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 레포지토리.

    User repository with email lookup and filtered listing.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        """이메일로 사용자를 조회합니다 (대소문자 무시).

        Retrieve a user by email, case-insensitively.
        """
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def get_filtered(
        self,
        db: AsyncSession,
        organization_id: UUID,
        role: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[User], int]:
        """역할/상태 필터로 사용자 목록을 페이지네이션 조회합니다.

        Paginated user listing filtered by role and active status.
        """
        query: Select = select(User).where(User.organization_id == organization_id)
        if role is not None:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        query = query.order_by(User.created_at.desc())
        return await self.get_paginated(db, query, page, limit)

    async def get_active_users(self, db: AsyncSession, organization_id: UUID) -> Sequence[User]:
        result = await db.execute(
            select(User).where(User.organization_id == organization_id, User.is_active.is_(True))
        )
        return result.scalars().all()

    async def count_active_employees(self, db: AsyncSession, organization_id: UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(User).where(
                User.organization_id == organization_id,
                User.role == UserRole.EMPLOYEE.value,
                User.is_active.is_(True),
            )
        )
        return result.scalar() or 0

    async def get_names(self, db: AsyncSession, user_ids: set[UUID]) -> dict[UUID, User]:
        """ID 집합으로 사용자 맵을 조회합니다 (Users keyed by id)."""
        if not user_ids:
            return {}
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        return {u.id: u for u in result.scalars().all()}


class EmployeeProfileRepository(BaseRepository[EmployeeProfile]):
    """직원 프로필 레포지토리 (Employee profile repository)."""

    def __init__(self) -> None:
        super().__init__(EmployeeProfile)

    async def get_by_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID | None = None,
    ) -> EmployeeProfile | None:
        query: Select = self._scoped(
            select(EmployeeProfile).where(EmployeeProfile.user_id == user_id), organization_id
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 (Singleton instances)
user_repository: UserRepository = UserRepository()
employee_profile_repository: EmployeeProfileRepository = EmployeeProfileRepository()
