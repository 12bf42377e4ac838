"""
Department staffing conflict detection.

Pure functions over explicit inputs: the proposed ranges, the requester, the
other plans holding days off in the department and the department staffing
figures. Nothing here touches the database, so the same inputs always give the
same report.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from vacation_service.models.vacation_plan import ACTIVE_STATUSES
from vacation_service.services.dates import DateRange
from vacation_service.services.directory import DepartmentStaffing, PlanSnapshot

_ACTIVE_VALUES = {s.value for s in ACTIVE_STATUSES}

# Stands in for a requester who is not yet identified (advisory queries)
_UNNAMED_REQUESTER = "__requester__"


@dataclass(frozen=True)
class FlaggedDay:
    day: date
    absent: int
    present: int

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day.isoformat(), "absent": self.absent, "present": self.present}


@dataclass(frozen=True)
class ConflictReport:
    has_conflict: bool
    conflict_reason: Optional[str] = None
    conflicting_plans: List[int] = field(default_factory=list)
    flagged_days: List[FlaggedDay] = field(default_factory=list)

    def to_snapshot(self) -> Dict[str, Any]:
        """JSON form stored on the approval record."""
        return {
            "plan_ids": list(self.conflicting_plans),
            "flagged_days": [d.to_dict() for d in self.flagged_days],
        }


NO_CONFLICT = ConflictReport(has_conflict=False)


def _reason(first: FlaggedDay, staffing: DepartmentStaffing, count: int) -> str:
    text = (
        f"{first.absent} of {staffing.total_staff} staff would be absent on {first.day.isoformat()}, "
        f"leaving {first.present} present (minimum {staffing.min_staff} required)"
    )
    if count > 1:
        text += f"; {count - 1} more day(s) affected"
    return text


def detect_conflicts(
    splits: Sequence[DateRange],
    candidates: Iterable[PlanSnapshot],
    staffing: DepartmentStaffing,
    staff_id: Optional[int] = None,
    exclude_plan_id: Optional[int] = None,
) -> ConflictReport:
    """
    Flag every requested day on which taking this vacation would leave the
    department below its minimum staffing.
    """
    requester = staff_id if staff_id is not None else _UNNAMED_REQUESTER
    others = [
        c for c in candidates
        if c.plan_id != exclude_plan_id
        and c.status in _ACTIVE_VALUES
        and c.staff_id != staff_id
    ]

    requested_days: Set[date] = set()
    for split in splits:
        requested_days.update(split.iter_days())

    flagged: List[FlaggedDay] = []
    conflicting: Set[int] = set()
    for day in sorted(requested_days):
        covering = [c for c in others if any(s.covers(day) for s in c.splits)]
        absent_staff = {requester} | {c.staff_id for c in covering}
        absent = len(absent_staff)
        present = max(staffing.total_staff - absent, 0)

        if present < staffing.min_staff:
            flagged.append(FlaggedDay(day=day, absent=absent, present=present))
            conflicting.update(c.plan_id for c in covering)

    if not flagged:
        return NO_CONFLICT

    return ConflictReport(
        has_conflict=True,
        conflict_reason=_reason(flagged[0], staffing, len(flagged)),
        conflicting_plans=sorted(conflicting),
        flagged_days=flagged,
    )
