"""도메인 열거형 — 역할, 상태, 감사 액션.

Domain enumerations shared by models, schemas and services.
Stored as plain strings in the database.
"""

import enum


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


# 관리자 역할 집합 (Roles allowed on admin routes)
ADMIN_ROLES: tuple[UserRole, ...] = (UserRole.SUPER_ADMIN, UserRole.ADMIN)


class TokenType(str, enum.Enum):
    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    REFRESH_TOKEN = "REFRESH_TOKEN"
    INVITATION = "INVITATION"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"
    HALF_DAY = "HALF_DAY"


class ProfileStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeaveCategory(str, enum.Enum):
    PERSONAL = "PERSONAL"
    ANNUAL = "ANNUAL"
    MEDICAL = "MEDICAL"
    EARNED = "EARNED"


class LeaveRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class PayrollStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PROCESSED = "PROCESSED"
    PAID = "PAID"


class AuditAction(str, enum.Enum):
    """감사 로그 액션 태그 (Every action tag any operation emits)."""

    ORGANIZATION_CREATED = "ORGANIZATION_CREATED"
    ORGANIZATION_SETTINGS_UPDATED = "ORGANIZATION_SETTINGS_UPDATED"
    ORGANIZATION_INFO_UPDATED = "ORGANIZATION_INFO_UPDATED"
    WORKING_HOURS_UPDATED = "WORKING_HOURS_UPDATED"
    ATTENDANCE_POLICY_UPDATED = "ATTENDANCE_POLICY_UPDATED"
    LEAVE_POLICY_UPDATED = "LEAVE_POLICY_UPDATED"
    NOTIFICATION_PREFERENCES_UPDATED = "NOTIFICATION_PREFERENCES_UPDATED"
    LOGO_UPDATED = "LOGO_UPDATED"

    USER_CREATED = "USER_CREATED"
    USER_ACTIVATED = "USER_ACTIVATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    PERMISSION_CHANGED = "PERMISSION_CHANGED"
    PROFILE_UPDATED = "PROFILE_UPDATED"
    DATA_EXPORT = "DATA_EXPORT"
    DATA_IMPORT = "DATA_IMPORT"

    INVITATION_SENT = "INVITATION_SENT"
    INVITATION_ACCEPTED = "INVITATION_ACCEPTED"
    INVITATION_REVOKED = "INVITATION_REVOKED"

    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    AUTO_CHECK_OUT = "AUTO_CHECK_OUT"
    ATTENDANCE_EDITED = "ATTENDANCE_EDITED"

    UPDATE_LEAVE_TYPE = "UPDATE_LEAVE_TYPE"
    INITIALIZE_LEAVE_TYPES = "INITIALIZE_LEAVE_TYPES"
    SET_LEAVE_BALANCE = "SET_LEAVE_BALANCE"
    INITIALIZE_LEAVE_BALANCES = "INITIALIZE_LEAVE_BALANCES"
    ROLLOVER_LEAVE_BALANCES = "ROLLOVER_LEAVE_BALANCES"
    CREATE_LEAVE_REQUEST = "CREATE_LEAVE_REQUEST"
    APPROVE_LEAVE_REQUEST = "APPROVE_LEAVE_REQUEST"
    REJECT_LEAVE_REQUEST = "REJECT_LEAVE_REQUEST"
    CANCEL_LEAVE_REQUEST = "CANCEL_LEAVE_REQUEST"

    SALARY_STRUCTURE_UPDATED = "SALARY_STRUCTURE_UPDATED"
    PAYROLL_GENERATED = "PAYROLL_GENERATED"
    PAYROLL_UPDATED = "PAYROLL_UPDATED"
    PAYROLL_MARKED_PAID = "PAYROLL_MARKED_PAID"
    PAYROLL_DELETED = "PAYROLL_DELETED"
