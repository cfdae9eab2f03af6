"""휴가 서비스 — 잔여 원장, 휴가 신청 상태 머신.

Leave Service — Balance ledger operations and the leave request state
machine: PENDING → APPROVED | REJECTED | CANCELLED. Only PENDING requests
move; the balance is debited at approval time (or at creation for
auto-approve leave types).
"""

import logging
from datetime import date
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.database import utcnow
from hrms.models.enums import AuditAction, LeaveRequestStatus
from hrms.models.leave import LeaveBalance, LeaveRequest, LeaveType
from hrms.models.user import User
from hrms.repositories.leave_repository import (
    leave_balance_repository,
    leave_request_repository,
    leave_type_repository,
)
from hrms.repositories.user_repository import user_repository
from hrms.schemas.leave import (
    LeaveBalanceResponse,
    LeaveRequestCreate,
    SetBalanceRequest,
)
from hrms.services.audit_service import audit_service
from hrms.services.organization_service import initial_remaining, organization_service
from hrms.utils.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def total_days(start: date, end: date) -> int:
    """양끝 포함 일수 (Inclusive day count)."""
    return (end - start).days + 1


class LeaveService:
    """휴가 비즈니스 로직 (Leave business logic)."""

    # ── 잔여 (Balances) ─────────────────────────────────────

    async def _balance_views(
        self,
        db: AsyncSession,
        organization_id: UUID,
        balances: Sequence[LeaveBalance],
    ) -> list[LeaveBalanceResponse]:
        types: dict[UUID, LeaveType] = {
            lt.id: lt for lt in await leave_type_repository.get_by_org(db, organization_id)
        }
        views: list[LeaveBalanceResponse] = []
        for balance in balances:
            leave_type: LeaveType | None = types.get(balance.leave_type_id)
            views.append(
                LeaveBalanceResponse.model_validate(balance).model_copy(
                    update={
                        "leave_type_name": leave_type.name if leave_type else None,
                        "category": leave_type.category if leave_type else None,
                    }
                )
            )
        return views

    async def get_balances(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
        year: int | None = None,
    ) -> list[LeaveBalanceResponse]:
        """사용자의 연도별 잔여 (A user's balances for a year; defaults to this year)."""
        if await user_repository.get_by_id(db, user_id, organization_id) is None:
            raise NotFoundError("Employee not found")
        balances = await leave_balance_repository.get_for_user_year(db, user_id, year or utcnow().year)
        return await self._balance_views(db, organization_id, balances)

    async def set_balance(
        self,
        db: AsyncSession,
        data: SetBalanceRequest,
        actor: User,
        ip_address: str | None = None,
    ) -> LeaveBalance:
        """잔여 설정 — remaining = max(0, total - used).

        Upsert a balance so the granted total becomes ``data.total``.
        """
        org_id: UUID = actor.organization_id
        if await user_repository.get_by_id(db, data.employee_id, org_id) is None:
            raise NotFoundError("Employee not found")
        if await leave_type_repository.get_by_id(db, data.leave_type_id, org_id) is None:
            raise NotFoundError("Leave type not found")

        balance: LeaveBalance | None = await leave_balance_repository.get_for(
            db, data.employee_id, data.leave_type_id, data.year
        )
        if balance is None:
            balance = await leave_balance_repository.create(
                db,
                {
                    "organization_id": org_id,
                    "user_id": data.employee_id,
                    "leave_type_id": data.leave_type_id,
                    "year": data.year,
                    "used": 0,
                    "remaining": data.total,
                },
            )
        else:
            balance = await leave_balance_repository.update(
                db, balance, {"remaining": max(0.0, data.total - balance.used)}
            )

        await audit_service.record(
            db, org_id, AuditAction.SET_LEAVE_BALANCE, user_id=actor.id,
            details={
                "employeeId": data.employee_id,
                "leaveTypeId": data.leave_type_id,
                "year": data.year,
                "total": data.total,
            },
            ip_address=ip_address,
        )
        return balance

    async def initialize_balances(
        self,
        db: AsyncSession,
        actor: User,
        year: int | None = None,
        ip_address: str | None = None,
    ) -> int:
        """연도 잔여 일괄 생성 (insert-only) (Create missing balances for a year)."""
        year = year or utcnow().year
        created: int = await organization_service.precreate_balances(db, actor.organization_id, year)
        await audit_service.record(
            db, actor.organization_id, AuditAction.INITIALIZE_LEAVE_BALANCES, user_id=actor.id,
            details={"year": year, "created": created}, ip_address=ip_address,
        )
        return created

    async def rollover_balances(
        self,
        db: AsyncSession,
        from_year: int,
        actor: User,
        ip_address: str | None = None,
    ) -> int:
        """다음 해 잔여 생성 — 이월 유형은 min(전년 잔여, 이월 한도).

        Create next-year balances (insert-only). Carry-forward types start at
        ``min(previous remaining, carryForwardLimit)``; others at their cap.
        """
        org_id: UUID = actor.organization_id
        org = await organization_service.get(db, org_id)
        limit: float = float((org.leave_policy or {}).get("carryForwardLimit") or 0)
        to_year: int = from_year + 1

        previous: dict[tuple[UUID, UUID], LeaveBalance] = {
            (b.user_id, b.leave_type_id): b
            for b in await leave_balance_repository.get_for_org_year(db, org_id, from_year)
        }
        existing: set[tuple[UUID, UUID]] = await leave_balance_repository.get_keys_for_year(db, org_id, to_year)
        leave_types: Sequence[LeaveType] = await leave_type_repository.get_by_org(db, org_id)

        created: int = 0
        for user in await user_repository.get_active_users(db, org_id):
            for leave_type in leave_types:
                key = (user.id, leave_type.id)
                if key in existing:
                    continue
                if leave_type.carry_forward:
                    prior: LeaveBalance | None = previous.get(key)
                    remaining: float = min(prior.remaining if prior else 0.0, limit)
                else:
                    remaining = float(leave_type.max_per_year)
                db.add(
                    LeaveBalance(
                        organization_id=org_id,
                        user_id=user.id,
                        leave_type_id=leave_type.id,
                        year=to_year,
                        used=0,
                        remaining=remaining,
                    )
                )
                created += 1
        if created:
            await db.flush()

        await audit_service.record(
            db, org_id, AuditAction.ROLLOVER_LEAVE_BALANCES, user_id=actor.id,
            details={"fromYear": from_year, "toYear": to_year, "created": created},
            ip_address=ip_address,
        )
        logger.info("Rolled over %d balance(s) org=%s %d→%d", created, org_id, from_year, to_year)
        return created

    # ── 신청 (Requests) ─────────────────────────────────────

    async def create_request(
        self,
        db: AsyncSession,
        user: User,
        data: LeaveRequestCreate,
        ip_address: str | None = None,
    ) -> LeaveRequest:
        """휴가 신청.

        Validates the range, the balance (skipped when no balance row
        exists) and overlap with pending/approved requests. Auto-approve
        types are approved and debited immediately.

        Raises:
            BadRequestError: 시작일 > 종료일 (Start after end)
            NotFoundError: 휴가 유형 없음 (Leave type not in the organization)
            InsufficientBalanceError: 잔여 부족 (Remaining below requested days)
            ConflictError: 기간 중복 (Overlaps an existing request)
        """
        if data.start_date > data.end_date:
            raise BadRequestError("startDate must be on or before endDate")

        leave_type: LeaveType | None = await leave_type_repository.get_by_id(
            db, data.leave_type_id, user.organization_id
        )
        if leave_type is None:
            raise NotFoundError("Leave type not found")
        if not leave_type.is_active:
            raise BadRequestError("Leave type is not active")

        days: int = total_days(data.start_date, data.end_date)
        balance: LeaveBalance | None = await leave_balance_repository.get_for(
            db, user.id, leave_type.id, data.start_date.year
        )
        if balance is not None and balance.remaining < days:
            raise InsufficientBalanceError(
                f"Insufficient leave balance: {balance.remaining:g} day(s) remaining, {days} requested"
            )

        if await leave_request_repository.find_overlap(db, user.id, data.start_date, data.end_date) is not None:
            raise ConflictError("Leave request overlaps an existing request")

        values: dict[str, Any] = {
            "organization_id": user.organization_id,
            "user_id": user.id,
            "leave_type_id": leave_type.id,
            "start_date": data.start_date,
            "end_date": data.end_date,
            "total_days": days,
            "reason": data.reason,
            "status": LeaveRequestStatus.PENDING.value,
        }
        if leave_type.auto_approve:
            if balance is not None and not await leave_balance_repository.debit(db, balance.id, days):
                raise InsufficientBalanceError()
            values.update(status=LeaveRequestStatus.APPROVED.value, approved_at=utcnow())

        request: LeaveRequest = await leave_request_repository.create(db, values)
        await audit_service.record(
            db, user.organization_id, AuditAction.CREATE_LEAVE_REQUEST, user_id=user.id,
            details={
                "leaveRequestId": request.id,
                "leaveType": leave_type.name,
                "totalDays": days,
                "status": request.status,
            },
            ip_address=ip_address,
        )
        return request

    async def _get_request(self, db: AsyncSession, request_id: UUID, organization_id: UUID) -> LeaveRequest:
        request: LeaveRequest | None = await leave_request_repository.get_by_id(db, request_id, organization_id)
        if request is None:
            raise NotFoundError("Leave request not found")
        return request

    async def cancel_request(
        self,
        db: AsyncSession,
        request_id: UUID,
        user: User,
        ip_address: str | None = None,
    ) -> LeaveRequest:
        """본인 대기 신청 취소 — 차감 전이므로 복원 없음.

        Raises:
            ForbiddenError: 타인의 신청 (Not the owner)
            InvalidStateError: 대기 상태 아님 (Not pending)
        """
        request: LeaveRequest = await self._get_request(db, request_id, user.organization_id)
        if request.user_id != user.id:
            raise ForbiddenError("You can only cancel your own leave requests")
        if request.status != LeaveRequestStatus.PENDING.value:
            raise InvalidStateError("Only pending requests can be cancelled")

        if not await leave_request_repository.transition(db, request.id, LeaveRequestStatus.CANCELLED):
            raise InvalidStateError("Only pending requests can be cancelled")
        await db.refresh(request)

        await audit_service.record(
            db, user.organization_id, AuditAction.CANCEL_LEAVE_REQUEST, user_id=user.id,
            details={"leaveRequestId": request.id}, ip_address=ip_address,
        )
        return request

    async def approve_request(
        self,
        db: AsyncSession,
        request_id: UUID,
        actor: User,
        ip_address: str | None = None,
    ) -> LeaveRequest:
        """승인 — 잔여 차감 (잔여 행이 없으면 차감 생략).

        The PENDING → APPROVED transition and the debit are both
        conditional updates in one transaction; either failing aborts both.

        Raises:
            InvalidStateError: 대기 상태 아님 (Not pending)
            InsufficientBalanceError: 잔여 부족 (Remaining below total days)
        """
        request: LeaveRequest = await self._get_request(db, request_id, actor.organization_id)
        if request.status != LeaveRequestStatus.PENDING.value:
            raise InvalidStateError("Only pending requests can be approved")

        balance: LeaveBalance | None = await leave_balance_repository.get_for(
            db, request.user_id, request.leave_type_id, request.start_date.year
        )
        if balance is not None and balance.remaining < request.total_days:
            raise InsufficientBalanceError(
                f"Insufficient leave balance: {balance.remaining:g} day(s) remaining, "
                f"{request.total_days} requested"
            )

        if not await leave_request_repository.transition(
            db, request.id, LeaveRequestStatus.APPROVED, approved_by=actor.id, approved_at=utcnow()
        ):
            raise InvalidStateError("Only pending requests can be approved")
        if balance is not None and not await leave_balance_repository.debit(db, balance.id, request.total_days):
            raise InsufficientBalanceError()
        await db.refresh(request)

        await audit_service.record(
            db, actor.organization_id, AuditAction.APPROVE_LEAVE_REQUEST, user_id=actor.id,
            details={"leaveRequestId": request.id, "employeeId": request.user_id, "totalDays": request.total_days},
            ip_address=ip_address,
        )
        return request

    async def reject_request(
        self,
        db: AsyncSession,
        request_id: UUID,
        actor: User,
        reason: str | None = None,
        ip_address: str | None = None,
    ) -> LeaveRequest:
        request: LeaveRequest = await self._get_request(db, request_id, actor.organization_id)
        if request.status != LeaveRequestStatus.PENDING.value:
            raise InvalidStateError("Only pending requests can be rejected")

        if not await leave_request_repository.transition(
            db,
            request.id,
            LeaveRequestStatus.REJECTED,
            approved_by=actor.id,
            approved_at=utcnow(),
            rejection_reason=reason,
        ):
            raise InvalidStateError("Only pending requests can be rejected")
        await db.refresh(request)

        await audit_service.record(
            db, actor.organization_id, AuditAction.REJECT_LEAVE_REQUEST, user_id=actor.id,
            details={"leaveRequestId": request.id, "employeeId": request.user_id, "reason": reason},
            ip_address=ip_address,
        )
        return request

    async def list_requests(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID | None = None,
        status: str | None = None,
        year: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[Sequence[LeaveRequest], int]:
        if user_id is not None and await user_repository.get_by_id(db, user_id, organization_id) is None:
            raise NotFoundError("Employee not found")
        return await leave_request_repository.get_filtered(
            db, organization_id, user_id=user_id, status=status, year=year, page=page, limit=limit
        )

    async def on_leave(self, db: AsyncSession, organization_id: UUID, day: date | None = None) -> list[dict[str, Any]]:
        """해당 날짜 휴가자 목록 (Approved requests covering the day, with names)."""
        day = day or utcnow().date()
        requests: Sequence[LeaveRequest] = await leave_request_repository.get_on_leave(db, organization_id, day)
        users: dict[UUID, User] = await user_repository.get_names(db, {r.user_id for r in requests})
        return [
            {
                "userId": r.user_id,
                "name": users[r.user_id].name if r.user_id in users else None,
                "email": users[r.user_id].email if r.user_id in users else None,
                "leaveRequestId": r.id,
                "leaveTypeId": r.leave_type_id,
                "startDate": r.start_date,
                "endDate": r.end_date,
                "totalDays": r.total_days,
            }
            for r in requests
        ]

    async def summary(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
        year: int | None = None,
    ) -> dict[str, Any]:
        """연간 휴가 요약 — 잔여, 예정 5건, 지난 10건, 사용 합계."""
        year = year or utcnow().year
        today: date = utcnow().date()
        balances: list[LeaveBalanceResponse] = await self.get_balances(db, user_id, organization_id, year)
        upcoming = await leave_request_repository.get_upcoming(db, user_id, today, limit=5)
        past = await leave_request_repository.get_past(db, user_id, today, limit=10)
        return {
            "year": year,
            "balances": balances,
            "upcoming": upcoming,
            "past": past,
            "totalBooked": sum(b.used for b in balances),
        }


# 싱글턴 인스턴스 (Singleton instance)
leave_service: LeaveService = LeaveService()
