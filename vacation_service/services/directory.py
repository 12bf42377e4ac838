"""
Directory lookups consumed by the vacation workflow.

The workflow only talks to the `DirectoryService` interface. `SqlDirectoryService`
reads the organization tables owned by the administration module; tests may
substitute any object with the same methods.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from vacation_service.core.config import settings
from vacation_service.models.department import Department
from vacation_service.models.organization import Facility, Workspace
from vacation_service.models.user import AppRole, User, UserRole
from vacation_service.models.vacation_plan import ACTIVE_STATUSES, VacationPlan
from vacation_service.services.dates import DateRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepartmentStaffing:
    min_staff: int
    total_staff: int


@dataclass(frozen=True)
class WorkspaceRules:
    max_splits: int
    min_notice_days: int


@dataclass(frozen=True)
class PlanSnapshot:
    """Read-only view of a plan holding days off."""
    plan_id: int
    staff_id: int
    status: str
    splits: Tuple[DateRange, ...]


class DirectoryService(Protocol):
    def get_approver(self, level: int, department_id: int) -> Optional[int]: ...

    def get_department_staffing(self, department_id: int) -> DepartmentStaffing: ...

    def get_active_plans(self, department_id: int) -> List[PlanSnapshot]: ...

    def get_staff_active_plans(self, staff_id: int, exclude_plan_id: Optional[int] = None) -> List[PlanSnapshot]: ...

    def get_staff_department(self, staff_id: int) -> Optional[int]: ...

    def get_workspace_rules(self, department_id: int) -> WorkspaceRules: ...


def _snapshot(plan: VacationPlan) -> PlanSnapshot:
    return PlanSnapshot(
        plan_id=plan.id,
        staff_id=plan.staff_id,
        status=plan.status,
        splits=tuple(DateRange(s.start_date, s.end_date) for s in plan.splits),
    )


class SqlDirectoryService:
    def __init__(self, db: Session):
        self.db = db

    def _workspace_for(self, department_id: int) -> Optional[Workspace]:
        return (
            self.db.query(Workspace)
            .join(Facility, Facility.workspace_id == Workspace.id)
            .join(Department, Department.facility_id == Facility.id)
            .filter(Department.id == department_id)
            .first()
        )

    def get_approver(self, level: int, department_id: int) -> Optional[int]:
        department = self.db.get(Department, department_id)
        if department is None:
            return None

        query = (
            self.db.query(UserRole.user_id)
            .join(User, User.id == UserRole.user_id)
            .filter(User.is_active == True)  # noqa: E712
        )
        if level == 1:
            query = query.filter(
                UserRole.role == AppRole.DEPARTMENT_HEAD,
                UserRole.department_id == department.id,
            )
        elif level == 2:
            query = query.filter(
                UserRole.role == AppRole.FACILITY_SUPERVISOR,
                UserRole.facility_id == department.facility_id,
            )
        elif level == 3:
            facility = self.db.get(Facility, department.facility_id)
            if facility is None:
                return None
            query = query.filter(
                UserRole.role == AppRole.WORKPLACE_SUPERVISOR,
                UserRole.workspace_id == facility.workspace_id,
            )
        else:
            return None

        # Oldest assignment wins when a scope has more than one holder
        row = query.order_by(UserRole.id).first()
        return row[0] if row else None

    def get_department_staffing(self, department_id: int) -> DepartmentStaffing:
        department = self.db.get(Department, department_id)
        total = (
            self.db.query(func.count(User.id))
            .filter(User.department_id == department_id, User.is_active == True)  # noqa: E712
            .scalar()
        ) or 0
        return DepartmentStaffing(
            min_staff=department.min_staffing if department and department.min_staffing else 0,
            total_staff=total,
        )

    def get_active_plans(self, department_id: int) -> List[PlanSnapshot]:
        plans = (
            self.db.query(VacationPlan)
            .options(selectinload(VacationPlan.splits))
            .filter(
                VacationPlan.department_id == department_id,
                VacationPlan.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .order_by(VacationPlan.id)
            .all()
        )
        return [_snapshot(p) for p in plans]

    def get_staff_active_plans(self, staff_id: int, exclude_plan_id: Optional[int] = None) -> List[PlanSnapshot]:
        query = (
            self.db.query(VacationPlan)
            .options(selectinload(VacationPlan.splits))
            .filter(
                VacationPlan.staff_id == staff_id,
                VacationPlan.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
        )
        if exclude_plan_id is not None:
            query = query.filter(VacationPlan.id != exclude_plan_id)
        return [_snapshot(p) for p in query.order_by(VacationPlan.id).all()]

    def get_staff_department(self, staff_id: int) -> Optional[int]:
        user = self.db.get(User, staff_id)
        if user is None or not user.is_active:
            return None
        return user.department_id

    def get_workspace_rules(self, department_id: int) -> WorkspaceRules:
        workspace = self._workspace_for(department_id)
        defaults = settings.vacation
        if workspace is None:
            logger.warning(f"Department {department_id} has no workspace; using default vacation rules")
            return WorkspaceRules(defaults.default_max_splits, defaults.default_min_notice_days)
        return WorkspaceRules(
            max_splits=workspace.max_vacation_splits or defaults.default_max_splits,
            min_notice_days=(
                workspace.min_vacation_notice_days
                if workspace.min_vacation_notice_days is not None
                else defaults.default_min_notice_days
            ),
        )
