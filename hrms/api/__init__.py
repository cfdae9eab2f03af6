"""API 라우터 패키지 — 모든 엔드포인트 통합.

API Router package — Aggregates every domain router into a single router
mounted under ``/api/v1``.

Included routers:
    - auth: 인증 및 세션 (Authentication and sessions)
    - organizations: 조직 정보와 정책 (Organization info and policies)
    - users: 사용자 관리 (User management)
    - profile: 직원 프로필 (Employee profiles)
    - invitations: 초대 기반 가입 (Invitation onboarding)
    - attendance: 출퇴근 기록 (Attendance)
    - leave: 휴가 잔여와 신청 (Leave balances and requests)
    - payroll: 급여 (Payroll)
    - audit: 감사 로그 (Audit log)
    - reports: 근태 리포트 (Attendance reports)
"""

from fastapi import APIRouter

from hrms.api.attendance import router as attendance_router
from hrms.api.audit import router as audit_router
from hrms.api.auth import router as auth_router
from hrms.api.invitations import router as invitations_router
from hrms.api.leave import router as leave_router
from hrms.api.organizations import router as organizations_router
from hrms.api.payroll import router as payroll_router
from hrms.api.profile import router as profile_router
from hrms.api.reports import router as reports_router
from hrms.api.users import router as users_router

api_router: APIRouter = APIRouter()

# ---------------------------------------------------------------------------
# 인증 및 조직 — Identity and organization
# ---------------------------------------------------------------------------
api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(organizations_router, prefix="/organizations", tags=["Organizations"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(profile_router, prefix="/profile", tags=["Profile"])
api_router.include_router(invitations_router, prefix="/invitations", tags=["Invitations"])

# ---------------------------------------------------------------------------
# 근태, 휴가, 급여 — Attendance, leave and payroll engines
# ---------------------------------------------------------------------------
api_router.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(leave_router, prefix="/leave", tags=["Leave"])
api_router.include_router(payroll_router, prefix="/payroll", tags=["Payroll"])

# ---------------------------------------------------------------------------
# 감사 및 리포트 — Audit and reports
# ---------------------------------------------------------------------------
api_router.include_router(audit_router, prefix="/audit", tags=["Audit"])
api_router.include_router(reports_router, prefix="/reports", tags=["Reports"])
