"""근태 리포트 서비스 — 일간, 주간, 월간 집계.

Report Service — Attendance statistics computed per organization in the
organization's timezone.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from hrms.models.attendance import Attendance
from hrms.models.organization import Organization
from hrms.models.user import User
from hrms.repositories.attendance_repository import attendance_repository
from hrms.repositories.user_repository import user_repository
from hrms.services.attendance_service import day_bounds, org_timezone
from hrms.utils.exceptions import BadRequestError


def _hours(record: Attendance) -> float:
    return (record.check_out - record.check_in).total_seconds() / 3600


class ReportService:
    """근태 리포트 (Attendance reports)."""

    def _daily_stats(self, day: date, records: Sequence[Attendance], total_employees: int) -> dict[str, Any]:
        present: int = len({r.user_id for r in records})
        closed: list[float] = [_hours(r) for r in records if r.check_out is not None]
        return {
            "date": day,
            "totalEmployees": total_employees,
            "present": present,
            "absent": max(total_employees - present, 0),
            "averageHours": round(sum(closed) / len(closed), 2) if closed else 0,
        }

    async def daily(self, db: AsyncSession, org: Organization, day: date) -> dict[str, Any]:
        """일간 통계 (Headcount, present, absent and average hours for a day)."""
        tz: ZoneInfo = org_timezone(org)
        start, end = day_bounds(day, tz)
        total: int = await user_repository.count_active_employees(db, org.id)
        records: Sequence[Attendance] = await attendance_repository.get_in_range(db, org.id, start, end)
        return self._daily_stats(day, records, total)

    async def weekly(self, db: AsyncSession, org: Organization, start_date: date) -> dict[str, Any]:
        """주간 통계 — start_date 이전(포함) 일요일부터 7일.

        Seven daily stats starting on the Sunday on or before start_date.
        """
        tz: ZoneInfo = org_timezone(org)
        sunday: date = start_date - timedelta(days=(start_date.weekday() + 1) % 7)
        week_start, _ = day_bounds(sunday, tz)
        week_end, _ = day_bounds(sunday + timedelta(days=7), tz)

        total: int = await user_repository.count_active_employees(db, org.id)
        records: Sequence[Attendance] = await attendance_repository.get_in_range(db, org.id, week_start, week_end)

        by_day: dict[date, list[Attendance]] = defaultdict(list)
        for record in records:
            by_day[record.check_in.astimezone(tz).date()].append(record)

        days: list[dict[str, Any]] = [
            self._daily_stats(sunday + timedelta(days=i), by_day.get(sunday + timedelta(days=i), []), total)
            for i in range(7)
        ]
        return {"weekStart": sunday, "weekEnd": sunday + timedelta(days=6), "days": days}

    async def monthly(self, db: AsyncSession, org: Organization, month: int, year: int) -> dict[str, Any]:
        """월간 통계 — 사용자별 출근일, 총 근무시간, 일평균.

        Raises:
            BadRequestError: 잘못된 월 (Month outside 1-12)
        """
        if not 1 <= month <= 12:
            raise BadRequestError("month must be between 1 and 12")

        tz: ZoneInfo = org_timezone(org)
        first: date = date(year, month, 1)
        following: date = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        start: datetime = day_bounds(first, tz)[0]
        end: datetime = day_bounds(following, tz)[0]

        records: Sequence[Attendance] = await attendance_repository.get_in_range(db, org.id, start, end)
        days: dict[UUID, set[date]] = defaultdict(set)
        hours: dict[UUID, float] = defaultdict(float)
        for record in records:
            days[record.user_id].add(record.check_in.astimezone(tz).date())
            if record.check_out is not None:
                hours[record.user_id] += _hours(record)

        users: dict[UUID, User] = await user_repository.get_names(db, set(days))
        employees: list[dict[str, Any]] = []
        for user_id, present_days in days.items():
            user: User | None = users.get(user_id)
            total_hours: float = round(hours[user_id], 2)
            employees.append(
                {
                    "userId": user_id,
                    "name": user.name if user else None,
                    "email": user.email if user else None,
                    "daysPresent": len(present_days),
                    "totalHours": total_hours,
                    "averageHoursPerDay": round(total_hours / len(present_days), 2),
                }
            )
        employees.sort(key=lambda e: (e["name"] or "").lower())
        return {"month": month, "year": year, "employees": employees}


# 싱글턴 인스턴스 (Singleton instance)
report_service: ReportService = ReportService()
