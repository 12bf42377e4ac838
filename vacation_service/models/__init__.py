# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    organization, department, user,
    vacation_type, vacation_plan, vacation_approval,
    notification, audit_log
)

# Explicit class exports for cleaner imports
from .organization import Workspace, Facility
from .department import Department
from .user import User, UserRole, AppRole
from .vacation_type import VacationType
from .vacation_plan import VacationPlan, VacationSplit, VacationStatus
from .vacation_approval import VacationApproval, ApprovalStatus, ApprovalLevel
from .notification import Notification
from .audit_log import AuditLog

__all__ = [
    "Workspace",
    "Facility",
    "Department",
    "User",
    "UserRole",
    "AppRole",
    "VacationType",
    "VacationPlan",
    "VacationSplit",
    "VacationStatus",
    "VacationApproval",
    "ApprovalStatus",
    "ApprovalLevel",
    "Notification",
    "AuditLog",
]
