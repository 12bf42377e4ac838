import pytest
import os
from datetime import date
from types import SimpleNamespace

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from vacation_service.database import Base, build_engine, get_db, init_db
from vacation_service.main import app
from vacation_service.models.department import Department
from vacation_service.models.organization import Facility, Workspace
from vacation_service.models.user import AppRole, User, UserRole
from vacation_service.models.vacation_plan import VacationPlan, VacationSplit, VacationStatus
from vacation_service.models.vacation_type import VacationType
from vacation_service.routers.deps import get_workflow
from vacation_service.services.dates import DateRange
from vacation_service.services.vacation_workflow import VacationWorkflowService
from fastapi.testclient import TestClient

# Fixed "today" so the notice-period rule is deterministic
TODAY = date(2024, 6, 1)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False)


class RecordingDispatcher:
    def __init__(self):
        self.intents = []

    def deliver(self, intent):
        self.intents.append(intent)


def d(value: str) -> date:
    return date.fromisoformat(value)


def rng(start: str, end: str) -> DateRange:
    return DateRange(d(start), d(end))


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database per test."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    init_db(engine)
    session = TestingSessionLocal(bind=engine)

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _user(db, email, name, department=None):
    user = User(email=email, full_name=name, department_id=department.id if department else None, is_active=True)
    db.add(user)
    db.flush()
    return user


@pytest.fixture(scope="function")
def org(db_session):
    """
    One workspace > facility > department with minimum staffing 3 and four
    staff members. Approvers sit outside the department headcount.
    """
    db = db_session
    workspace = Workspace(name="North Region", max_vacation_splits=6, min_vacation_notice_days=14, max_concurrent_vacations=3)
    db.add(workspace)
    db.flush()
    facility = Facility(name="General Hospital", workspace_id=workspace.id)
    db.add(facility)
    db.flush()
    department = Department(name="Radiology", facility_id=facility.id, min_staffing=3)
    db.add(department)
    db.flush()

    staff = [
        _user(db, f"staff{i}@example.com", f"Staff {i}", department)
        for i in range(1, 5)
    ]
    head = _user(db, "head@example.com", "Dana Head")
    facility_supervisor = _user(db, "facility@example.com", "Fran Facility")
    workplace_supervisor = _user(db, "workplace@example.com", "Wes Workplace")
    admin = _user(db, "admin@example.com", "Ada Admin")
    db.add_all([
        UserRole(user_id=head.id, role=AppRole.DEPARTMENT_HEAD, department_id=department.id),
        UserRole(user_id=facility_supervisor.id, role=AppRole.FACILITY_SUPERVISOR, facility_id=facility.id),
        UserRole(user_id=workplace_supervisor.id, role=AppRole.WORKPLACE_SUPERVISOR, workspace_id=workspace.id),
        UserRole(user_id=admin.id, role=AppRole.ORGANIZATION_ADMIN),
    ])

    annual = VacationType(name="Annual Leave", max_days=30, requires_documentation=False)
    medical = VacationType(name="Medical Leave", max_days=None, requires_documentation=True)
    db.add_all([annual, medical])
    db.commit()

    return SimpleNamespace(
        workspace=workspace,
        facility=facility,
        department=department,
        staff=staff,
        head=head,
        facility_supervisor=facility_supervisor,
        workplace_supervisor=workplace_supervisor,
        admin=admin,
        annual=annual,
        medical=medical,
    )


@pytest.fixture(scope="function")
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture(scope="function")
def workflow(db_session, dispatcher):
    return VacationWorkflowService(db_session, dispatcher=dispatcher, today=lambda: TODAY)


@pytest.fixture(scope="function")
def insert_plan(db_session, org):
    """Write a plan directly in a given status, bypassing the workflow."""
    def _insert(staff, ranges, status=VacationStatus.APPROVED, department=None):
        plan = VacationPlan(
            staff_id=staff.id,
            department_id=(department or org.department).id,
            vacation_type_id=org.annual.id,
            created_by=staff.id,
            total_days=sum(r.days for r in ranges),
            status=status.value,
            splits=[VacationSplit(start_date=r.start_date, end_date=r.end_date, days=r.days) for r in ranges],
        )
        db_session.add(plan)
        db_session.commit()
        return plan
    return _insert


@pytest.fixture(scope="function")
def submitted_plan(workflow, org):
    """Staff 1 asks for 2024-07-10..2024-07-12 and submits."""
    def _submitted(staff=None, ranges=None):
        staff = staff or org.staff[0]
        plan = workflow.create_plan(
            actor_id=staff.id,
            vacation_type_id=org.annual.id,
            splits=ranges or [rng("2024-07-10", "2024-07-12")],
        )
        return workflow.submit(plan.id, staff.id).plan
    return _submitted


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_workflow():
        return VacationWorkflowService(db_session, today=lambda: TODAY)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workflow] = override_get_workflow
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def as_user():
    def _headers(user):
        return {"X-User-ID": str(user.id)}
    return _headers
