"""SQLAlchemy ORM 모델 패키지 — 모든 모델을 한 곳에서 import.

All ORM models, imported here so Base.metadata sees every table.
"""

from hrms.models.attendance import Attendance
from hrms.models.audit import AuditLog
from hrms.models.leave import LeaveBalance, LeaveRequest, LeaveType
from hrms.models.organization import Counter, Organization
from hrms.models.payroll import Payroll, SalaryStructure
from hrms.models.token import Invitation, Token
from hrms.models.user import EmployeeProfile, User

__all__ = [
    "Attendance",
    "AuditLog",
    "Counter",
    "EmployeeProfile",
    "Invitation",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveType",
    "Organization",
    "Payroll",
    "SalaryStructure",
    "Token",
    "User",
]
