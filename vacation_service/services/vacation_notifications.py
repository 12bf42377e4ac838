"""
Composes the notification sent for each vacation status change.

approved / rejected      -> the staff member
*_pending                -> the approver who now holds the request
withdrawn                -> the approver who held the request
"""
from typing import Optional

from vacation_service.models.vacation_plan import VacationStatus
from vacation_service.services.notification import NotificationIntent

PENDING_TITLES = {
    VacationStatus.DEPARTMENT_PENDING: "New Vacation Request",
    VacationStatus.FACILITY_PENDING: "Vacation Needs Level 2 Approval",
    VacationStatus.WORKSPACE_PENDING: "Vacation Needs Final Approval",
}

PENDING_AUDIENCE = {
    VacationStatus.DEPARTMENT_PENDING: "your approval",
    VacationStatus.FACILITY_PENDING: "facility supervisor approval",
    VacationStatus.WORKSPACE_PENDING: "workplace supervisor approval",
}


def _by(actor_name: Optional[str]) -> str:
    return f" by {actor_name}" if actor_name else ""


def compose_status_notification(
    plan_id: int,
    new_status: VacationStatus,
    vacation_type: str,
    total_days: int,
    staff_id: int,
    approver_id: Optional[int] = None,
    actor_name: Optional[str] = None,
    comment: Optional[str] = None,
    conflict_reason: Optional[str] = None,
) -> Optional[NotificationIntent]:
    """Returns None for statuses that notify nobody (draft)."""
    vacation_type = vacation_type or "Vacation"

    if new_status == VacationStatus.APPROVED:
        return NotificationIntent(
            target_user_id=staff_id,
            title="Vacation Approved",
            message=f"Your {vacation_type} request for {total_days} days has been fully approved{_by(actor_name)}.",
            related_plan_id=plan_id,
        )

    if new_status == VacationStatus.REJECTED:
        message = f"Your {vacation_type} request for {total_days} days has been rejected{_by(actor_name)}."
        if comment:
            message += f" Reason: {comment}"
        return NotificationIntent(
            target_user_id=staff_id,
            title="Vacation Rejected",
            message=message,
            related_plan_id=plan_id,
        )

    if new_status in PENDING_TITLES:
        if approver_id is None:
            raise ValueError(f"A {new_status.value} notification needs the resolved approver")
        message = f"{vacation_type} request for {total_days} days needs {PENDING_AUDIENCE[new_status]}."
        if conflict_reason:
            message += f" Staffing conflict flagged at the previous level: {conflict_reason}."
        return NotificationIntent(
            target_user_id=approver_id,
            title=PENDING_TITLES[new_status],
            message=message,
            related_plan_id=plan_id,
        )

    return None


def compose_withdrawal_notification(
    plan_id: int,
    vacation_type: str,
    total_days: int,
    approver_id: int,
    staff_name: Optional[str] = None,
) -> NotificationIntent:
    return NotificationIntent(
        target_user_id=approver_id,
        title="Vacation Request Withdrawn",
        message=f"{vacation_type or 'Vacation'} request for {total_days} days was withdrawn{_by(staff_name)} and needs no further action.",
        related_plan_id=plan_id,
    )
