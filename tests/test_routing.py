import pytest

from vacation_service.core.exceptions import NoApproverAssigned
from vacation_service.models.department import Department
from vacation_service.models.user import AppRole, User, UserRole
from vacation_service.services.directory import SqlDirectoryService
from vacation_service.services.routing import ApprovalRouter


@pytest.fixture
def router(db_session):
    return ApprovalRouter(SqlDirectoryService(db_session))


def test_each_level_resolves_its_role_holder(router, org):
    assert router.resolve(1, org.department.id) == org.head.id
    assert router.resolve(2, org.department.id) == org.facility_supervisor.id
    assert router.resolve(3, org.department.id) == org.workplace_supervisor.id


def test_missing_role_raises_no_approver(router, org, db_session):
    db_session.query(UserRole).filter(UserRole.role == AppRole.FACILITY_SUPERVISOR).delete()
    db_session.commit()

    with pytest.raises(NoApproverAssigned) as exc_info:
        router.resolve(2, org.department.id)

    assert exc_info.value.level == 2
    assert exc_info.value.role == AppRole.FACILITY_SUPERVISOR.value
    assert exc_info.value.error_code == "NO_APPROVER_ASSIGNED"


def test_inactive_holder_is_not_routed(router, org, db_session):
    org.head.is_active = False
    db_session.commit()

    with pytest.raises(NoApproverAssigned):
        router.resolve(1, org.department.id)


def test_oldest_assignment_wins(router, org, db_session):
    deputy = User(email="deputy@example.com", full_name="Deputy Head", is_active=True)
    db_session.add(deputy)
    db_session.flush()
    db_session.add(UserRole(user_id=deputy.id, role=AppRole.DEPARTMENT_HEAD, department_id=org.department.id))
    db_session.commit()

    assert router.resolve(1, org.department.id) == org.head.id


def test_head_of_another_department_is_not_routed(router, org, db_session):
    other = Department(name="Cardiology", facility_id=org.facility.id, min_staffing=1)
    db_session.add(other)
    db_session.commit()

    with pytest.raises(NoApproverAssigned):
        router.resolve(1, other.id)
    # Facility and workspace approvers are shared
    assert router.resolve(2, other.id) == org.facility_supervisor.id
