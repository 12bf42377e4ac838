from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List, Sequence, Tuple


@dataclass(frozen=True, order=True)
class DateRange:
    """Inclusive calendar range; a single-day vacation has start_date == end_date."""
    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def overlaps(self, other: "DateRange") -> bool:
        return self.start_date <= other.end_date and other.start_date <= self.end_date

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def iter_days(self) -> Iterator[date]:
        day = self.start_date
        while day <= self.end_date:
            yield day
            day += timedelta(days=1)

    def to_dict(self) -> dict:
        return {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat(), "days": self.days}

    def __str__(self) -> str:
        return f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"


def total_days(ranges: Sequence[DateRange]) -> int:
    return sum(r.days for r in ranges)


def internal_overlaps(ranges: Sequence[DateRange]) -> List[Tuple[DateRange, DateRange]]:
    """Pairs of ranges within one plan that share at least one day."""
    ordered = sorted(ranges)
    clashes = []
    for i, current in enumerate(ordered):
        for other in ordered[i + 1:]:
            if other.start_date > current.end_date:
                break
            clashes.append((current, other))
    return clashes
