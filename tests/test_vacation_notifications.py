import pytest

from vacation_service.models.vacation_plan import VacationStatus
from vacation_service.services.vacation_notifications import (
    compose_status_notification,
    compose_withdrawal_notification,
)

STAFF = 10
APPROVER = 20


def compose(status, **kwargs):
    params = dict(plan_id=5, new_status=status, vacation_type="Annual Leave", total_days=3, staff_id=STAFF)
    params.update(kwargs)
    return compose_status_notification(**params)


def test_approved_goes_to_staff():
    intent = compose(VacationStatus.APPROVED, actor_name="Wes Workplace")
    assert intent.target_user_id == STAFF
    assert intent.title == "Vacation Approved"
    assert intent.message == "Your Annual Leave request for 3 days has been fully approved by Wes Workplace."
    assert intent.related_plan_id == 5
    assert intent.type == "vacation"


def test_rejected_carries_comment():
    intent = compose(VacationStatus.REJECTED, actor_name="Dana Head", comment="insufficient notice")
    assert intent.target_user_id == STAFF
    assert intent.title == "Vacation Rejected"
    assert intent.message.endswith("Reason: insufficient notice")


def test_rejected_without_comment_has_no_reason():
    intent = compose(VacationStatus.REJECTED)
    assert "Reason" not in intent.message


@pytest.mark.parametrize(
    "status,title,audience",
    [
        (VacationStatus.DEPARTMENT_PENDING, "New Vacation Request", "your approval"),
        (VacationStatus.FACILITY_PENDING, "Vacation Needs Level 2 Approval", "facility supervisor approval"),
        (VacationStatus.WORKSPACE_PENDING, "Vacation Needs Final Approval", "workplace supervisor approval"),
    ],
)
def test_pending_goes_to_next_approver(status, title, audience):
    intent = compose(status, approver_id=APPROVER)
    assert intent.target_user_id == APPROVER
    assert intent.title == title
    assert intent.message == f"Annual Leave request for 3 days needs {audience}."


def test_pending_mentions_flagged_conflict():
    intent = compose(VacationStatus.FACILITY_PENDING, approver_id=APPROVER, conflict_reason="4 of 4 staff would be absent")
    assert "Staffing conflict flagged at the previous level: 4 of 4 staff would be absent." in intent.message


def test_pending_requires_approver():
    with pytest.raises(ValueError):
        compose(VacationStatus.FACILITY_PENDING)


def test_draft_notifies_nobody():
    assert compose(VacationStatus.DRAFT) is None


def test_missing_type_name_falls_back():
    intent = compose(VacationStatus.APPROVED, vacation_type=None)
    assert intent.message.startswith("Your Vacation request")


def test_withdrawal_goes_to_current_approver():
    intent = compose_withdrawal_notification(plan_id=5, vacation_type="Annual Leave", total_days=3, approver_id=APPROVER, staff_name="Staff 1")
    assert intent.target_user_id == APPROVER
    assert intent.title == "Vacation Request Withdrawn"
    assert "withdrawn by Staff 1" in intent.message
