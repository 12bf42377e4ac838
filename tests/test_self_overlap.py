from datetime import date

import pytest

from vacation_service.core.exceptions import OverlapConflict
from vacation_service.models.vacation_plan import VacationStatus
from vacation_service.services.dates import DateRange
from vacation_service.services.directory import SqlDirectoryService
from vacation_service.services.overlap import SelfOverlapValidator


def rng(start, end):
    return DateRange(date.fromisoformat(start), date.fromisoformat(end))


@pytest.fixture
def validator(db_session):
    return SelfOverlapValidator(SqlDirectoryService(db_session))


def test_overlap_with_approved_plan_is_rejected(validator, org, insert_plan):
    """Scenario C: approved 07-01..07-15, new request 07-10..07-20."""
    existing = insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-15")])

    with pytest.raises(OverlapConflict) as exc_info:
        validator.validate(org.staff[0].id, [rng("2024-07-10", "2024-07-20")])

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["plan_ids"] == [existing.id]
    assert "2024-07-01..2024-07-15" in exc_info.value.message


def test_overlap_with_pending_plan_is_rejected(validator, org, insert_plan):
    insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-03")], status=VacationStatus.FACILITY_PENDING)

    with pytest.raises(OverlapConflict):
        validator.validate(org.staff[0].id, [rng("2024-07-03", "2024-07-03")])


def test_rejected_and_draft_plans_do_not_block(validator, org, insert_plan):
    insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-15")], status=VacationStatus.REJECTED)
    insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-15")], status=VacationStatus.DRAFT)

    validator.validate(org.staff[0].id, [rng("2024-07-10", "2024-07-20")])


def test_adjacent_ranges_are_allowed(validator, org, insert_plan):
    insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-15")])

    validator.validate(org.staff[0].id, [rng("2024-07-16", "2024-07-20")])


def test_other_staff_plans_are_ignored(validator, org, insert_plan):
    insert_plan(org.staff[1], [rng("2024-07-01", "2024-07-15")])

    validator.validate(org.staff[0].id, [rng("2024-07-10", "2024-07-20")])


def test_excluded_plan_is_skipped(validator, org, insert_plan):
    own = insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-15")], status=VacationStatus.DEPARTMENT_PENDING)

    validator.validate(org.staff[0].id, [rng("2024-07-10", "2024-07-20")], exclude_plan_id=own.id)


def test_every_clashing_split_is_reported(validator, org, insert_plan):
    first = insert_plan(org.staff[0], [rng("2024-07-01", "2024-07-02")])
    second = insert_plan(org.staff[0], [rng("2024-08-01", "2024-08-02")])

    with pytest.raises(OverlapConflict) as exc_info:
        validator.validate(
            org.staff[0].id,
            [rng("2024-07-02", "2024-07-04"), rng("2024-08-02", "2024-08-03")],
        )

    assert exc_info.value.details["plan_ids"] == sorted([first.id, second.id])
    assert len(exc_info.value.details["overlaps"]) == 2
