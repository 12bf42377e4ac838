"""
Vacation plan status machine.

    draft -> department_pending -> facility_pending -> workspace_pending -> approved
                    |                    |                   |
                    +------------------> rejected <----------+

Every status write must be listed in TRANSITIONS.
"""
import enum
from typing import Dict, FrozenSet

from vacation_service.core.exceptions import StaleTransition
from vacation_service.models.vacation_approval import ApprovalLevel
from vacation_service.models.vacation_plan import VacationStatus


class DecisionOutcome(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


FINAL_LEVEL = ApprovalLevel.WORKSPACE

STATUS_FOR_LEVEL: Dict[ApprovalLevel, VacationStatus] = {
    ApprovalLevel.DEPARTMENT: VacationStatus.DEPARTMENT_PENDING,
    ApprovalLevel.FACILITY: VacationStatus.FACILITY_PENDING,
    ApprovalLevel.WORKSPACE: VacationStatus.WORKSPACE_PENDING,
}

LEVEL_FOR_STATUS: Dict[VacationStatus, ApprovalLevel] = {v: k for k, v in STATUS_FOR_LEVEL.items()}

TRANSITIONS: Dict[VacationStatus, FrozenSet[VacationStatus]] = {
    VacationStatus.DRAFT: frozenset({VacationStatus.DEPARTMENT_PENDING}),
    VacationStatus.DEPARTMENT_PENDING: frozenset({VacationStatus.FACILITY_PENDING, VacationStatus.REJECTED}),
    VacationStatus.FACILITY_PENDING: frozenset({VacationStatus.WORKSPACE_PENDING, VacationStatus.REJECTED}),
    VacationStatus.WORKSPACE_PENDING: frozenset({VacationStatus.APPROVED, VacationStatus.REJECTED}),
    VacationStatus.APPROVED: frozenset(),
    VacationStatus.REJECTED: frozenset(),
}


def is_allowed(current: VacationStatus, target: VacationStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: VacationStatus, target: VacationStatus) -> None:
    if not is_allowed(current, target):
        raise StaleTransition(
            f"Cannot move a vacation plan from {current.value} to {target.value}",
            details={"current_status": current.value, "target_status": target.value},
        )


def status_after(level: ApprovalLevel, outcome: DecisionOutcome) -> VacationStatus:
    """Status a plan moves to when `level` records `outcome`."""
    if outcome == DecisionOutcome.REJECT:
        return VacationStatus.REJECTED
    if level == FINAL_LEVEL:
        return VacationStatus.APPROVED
    return STATUS_FOR_LEVEL[ApprovalLevel(level + 1)]
