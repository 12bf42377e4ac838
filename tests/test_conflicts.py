from datetime import date

from vacation_service.services.conflicts import detect_conflicts
from vacation_service.services.dates import DateRange
from vacation_service.services.directory import DepartmentStaffing, PlanSnapshot


def rng(start, end):
    return DateRange(date.fromisoformat(start), date.fromisoformat(end))


STAFFING = DepartmentStaffing(min_staff=3, total_staff=4)
REQUEST = [rng("2024-07-10", "2024-07-10")]
X = 1


def snapshot(plan_id, staff_id, start, end, status="approved"):
    return PlanSnapshot(plan_id=plan_id, staff_id=staff_id, status=status, splits=(rng(start, end),))


def test_lone_absence_is_not_a_conflict():
    """Scenario A: 3 of 4 remain present, which meets the minimum."""
    report = detect_conflicts(REQUEST, [], STAFFING, staff_id=X)
    assert report.has_conflict is False
    assert report.conflict_reason is None
    assert report.conflicting_plans == []


def test_department_fully_absent_is_flagged():
    """Scenario B: three others already off on the same day."""
    others = [
        snapshot(11, 2, "2024-07-08", "2024-07-12"),
        snapshot(12, 3, "2024-07-10", "2024-07-10", status="department_pending"),
        snapshot(13, 4, "2024-07-01", "2024-07-15", status="workspace_pending"),
    ]
    report = detect_conflicts(REQUEST, others, STAFFING, staff_id=X)
    assert report.has_conflict is True
    assert report.conflicting_plans == [11, 12, 13]
    assert report.flagged_days[0].day == date(2024, 7, 10)
    assert report.flagged_days[0].absent == 4
    assert report.flagged_days[0].present == 0
    assert "4 of 4 staff would be absent on 2024-07-10" in report.conflict_reason
    assert "minimum 3 required" in report.conflict_reason


def test_single_other_absence_breaches_minimum():
    others = [snapshot(21, 2, "2024-07-10", "2024-07-11")]
    report = detect_conflicts(REQUEST, others, STAFFING, staff_id=X)
    assert report.has_conflict is True
    assert report.conflicting_plans == [21]


def test_rejected_and_draft_plans_are_ignored():
    others = [
        snapshot(31, 2, "2024-07-10", "2024-07-10", status="rejected"),
        snapshot(32, 3, "2024-07-10", "2024-07-10", status="draft"),
    ]
    report = detect_conflicts(REQUEST, others, STAFFING, staff_id=X)
    assert report.has_conflict is False


def test_own_plan_is_excluded():
    others = [snapshot(41, 2, "2024-07-10", "2024-07-10")]
    report = detect_conflicts(REQUEST, others, STAFFING, staff_id=2, exclude_plan_id=41)
    assert report.has_conflict is False


def test_non_intersecting_plans_are_not_listed():
    staffing = DepartmentStaffing(min_staff=2, total_staff=3)
    others = [
        snapshot(51, 2, "2024-07-10", "2024-07-10"),
        snapshot(52, 3, "2024-08-01", "2024-08-05"),
    ]
    report = detect_conflicts(REQUEST, others, staffing, staff_id=X)
    assert report.has_conflict is True
    assert report.conflicting_plans == [51]


def test_plans_intersecting_only_unflagged_days_are_not_listed():
    staffing = DepartmentStaffing(min_staff=2, total_staff=4)
    request = [rng("2024-07-10", "2024-07-12")]
    others = [
        # 07-11 is the only day where two others are off at once
        snapshot(61, 2, "2024-07-11", "2024-07-11"),
        snapshot(62, 3, "2024-07-11", "2024-07-12"),
        snapshot(63, 4, "2024-07-20", "2024-07-21"),
    ]
    report = detect_conflicts(request, others, staffing, staff_id=X)
    assert [f.day for f in report.flagged_days] == [date(2024, 7, 11)]
    assert report.conflicting_plans == [61, 62]


def test_same_colleague_on_two_plans_counts_once():
    staffing = DepartmentStaffing(min_staff=2, total_staff=4)
    others = [
        snapshot(71, 2, "2024-07-10", "2024-07-10"),
        snapshot(72, 2, "2024-07-09", "2024-07-11"),
    ]
    report = detect_conflicts(REQUEST, others, staffing, staff_id=X)
    assert report.has_conflict is False


def test_many_concurrent_absences_are_fine_while_minimum_is_met():
    staffing = DepartmentStaffing(min_staff=3, total_staff=10)
    others = [snapshot(80 + i, 2 + i, "2024-07-10", "2024-07-10") for i in range(3)]
    report = detect_conflicts(REQUEST, others, staffing, staff_id=X)
    assert report.has_conflict is False
    assert report.flagged_days == []


def test_reason_mentions_additional_days():
    staffing = DepartmentStaffing(min_staff=4, total_staff=4)
    report = detect_conflicts([rng("2024-07-10", "2024-07-12")], [], staffing, staff_id=X)
    assert len(report.flagged_days) == 3
    assert report.conflict_reason.endswith("2 more day(s) affected")


def test_adding_overlapping_plans_never_clears_a_conflict():
    staffing = DepartmentStaffing(min_staff=2, total_staff=4)
    pool = [
        snapshot(91, 2, "2024-07-10", "2024-07-10"),
        snapshot(92, 3, "2024-07-09", "2024-07-10"),
        snapshot(93, 4, "2024-07-10", "2024-07-11"),
    ]
    seen_conflict = False
    for size in range(len(pool) + 1):
        report = detect_conflicts(REQUEST, pool[:size], staffing, staff_id=X)
        if seen_conflict:
            assert report.has_conflict is True
        seen_conflict = seen_conflict or report.has_conflict
    assert seen_conflict is True


def test_repeated_queries_return_identical_reports():
    others = [snapshot(101, 2, "2024-07-10", "2024-07-10"), snapshot(102, 3, "2024-07-10", "2024-07-10")]
    first = detect_conflicts(REQUEST, others, STAFFING, staff_id=X)
    second = detect_conflicts(REQUEST, others, STAFFING, staff_id=X)
    assert first == second


def test_anonymous_requester_still_counts_as_absent():
    others = [snapshot(111, 2, "2024-07-10", "2024-07-10")]
    report = detect_conflicts(REQUEST, others, STAFFING)
    assert report.has_conflict is True
    assert report.flagged_days[0].absent == 2
