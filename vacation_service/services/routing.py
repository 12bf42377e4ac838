import logging
from typing import Dict

from vacation_service.core.exceptions import NoApproverAssigned
from vacation_service.models.user import AppRole
from vacation_service.models.vacation_approval import ApprovalLevel
from vacation_service.services.directory import DirectoryService

logger = logging.getLogger(__name__)

ROLE_FOR_LEVEL: Dict[ApprovalLevel, AppRole] = {
    ApprovalLevel.DEPARTMENT: AppRole.DEPARTMENT_HEAD,
    ApprovalLevel.FACILITY: AppRole.FACILITY_SUPERVISOR,
    ApprovalLevel.WORKSPACE: AppRole.WORKPLACE_SUPERVISOR,
}


class ApprovalRouter:
    """Resolves the single approver responsible for a level of a department's plans."""

    def __init__(self, directory: DirectoryService):
        self.directory = directory

    def resolve(self, level: int, department_id: int) -> int:
        level = ApprovalLevel(level)
        approver_id = self.directory.get_approver(int(level), department_id)
        if approver_id is None:
            role = ROLE_FOR_LEVEL[level]
            logger.error(
                f"No {role.value} assigned for department {department_id}; vacation plans stay pending at level {int(level)}",
                extra={"department_id": department_id, "level": int(level)},
            )
            raise NoApproverAssigned(int(level), role.value, department_id)
        return approver_id
