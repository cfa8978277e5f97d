"""Half-open time intervals occupied by reservations."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..core.exceptions import InvalidIntervalError

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, order=True)
class Interval:
    """
    A half-open range ``[start, end)`` of naive wall-clock datetimes in the
    resource's local calendar.

    Instances order by ``start`` then ``end``. Construction rejects empty and
    inverted ranges, so every live ``Interval`` satisfies ``start < end``.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidIntervalError(detail="Interval bounds must be datetimes")
        if self.start.tzinfo is not None or self.end.tzinfo is not None:
            raise InvalidIntervalError(
                detail="Interval bounds are local wall-clock times and must not carry a timezone",
                start=self.start,
                end=self.end,
            )
        if self.start >= self.end:
            raise InvalidIntervalError(
                detail=f"Interval start {self.start.isoformat()} must be before end {self.end.isoformat()}",
                start=self.start,
                end=self.end,
            )

    @classmethod
    def from_dates(cls, start: date, end: date) -> "Interval":
        """Whole-day interval from midnight of ``start`` to midnight of ``end``."""
        return cls(datetime.combine(start, time.min), datetime.combine(end, time.min))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def days(self) -> list[date]:
        """Calendar dates touched by this interval."""
        last = (self.end - timedelta(microseconds=1)).date()
        current = self.start.date()
        touched = []
        while current <= last:
            touched.append(current)
            current += ONE_DAY
        return touched

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the two intervals share any instant; touching ends do not overlap."""
    return a.start < b.end and b.start < a.end


def contains(a: Interval, point: datetime) -> bool:
    """True iff ``point`` falls inside ``a``, including ``a.start`` but not ``a.end``."""
    return a.start <= point < a.end


def day_interval(day: date, days: int = 1) -> Interval:
    """Interval covering ``days`` whole calendar days starting at ``day``."""
    if days < 1:
        raise InvalidIntervalError(detail=f"A day booking must cover at least one day, got {days}")
    return Interval.from_dates(day, day + timedelta(days=days))
