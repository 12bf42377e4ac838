import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from vacation_service.core.exceptions import OverlapConflict
from vacation_service.services.dates import DateRange
from vacation_service.services.directory import DirectoryService, PlanSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlapHit:
    plan_id: int
    status: str
    existing: DateRange
    proposed: DateRange

    def to_dict(self) -> dict:
        return {
            "plan_id": self.plan_id,
            "status": self.status,
            "existing": self.existing.to_dict(),
            "proposed": self.proposed.to_dict(),
        }


def find_self_overlaps(proposed: Sequence[DateRange], existing_plans: Iterable[PlanSnapshot]) -> List[OverlapHit]:
    hits = []
    for plan in existing_plans:
        for existing in plan.splits:
            for candidate in proposed:
                if existing.overlaps(candidate):
                    hits.append(OverlapHit(plan.plan_id, plan.status, existing, candidate))
    return hits


class SelfOverlapValidator:
    """Keeps one person from holding two vacations on the same day."""

    def __init__(self, directory: DirectoryService):
        self.directory = directory

    def validate(self, staff_id: int, splits: Sequence[DateRange], exclude_plan_id: Optional[int] = None) -> None:
        existing = self.directory.get_staff_active_plans(staff_id, exclude_plan_id)
        hits = find_self_overlaps(splits, existing)
        if not hits:
            return

        first = hits[0]
        logger.info(
            f"Rejected overlapping vacation for staff {staff_id}: {first.proposed} clashes with plan {first.plan_id}"
        )
        raise OverlapConflict(
            f"You already have a {first.status} vacation covering {first.existing} "
            f"(plan {first.plan_id}); choose different dates.",
            details={
                "plan_ids": sorted({h.plan_id for h in hits}),
                "overlaps": [h.to_dict() for h in hits],
            },
        )
