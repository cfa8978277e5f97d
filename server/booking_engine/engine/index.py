"""Per-resource index of intervals occupied by active reservations."""

import logging
from bisect import bisect_left, insort
from typing import Iterable

from ..core.exceptions import BookingConflictError
from .conflicts import check
from .interval import Interval

logger = logging.getLogger(__name__)


class AvailabilityIndex:
    """
    In-memory map from resource ID to its sorted, non-overlapping active intervals.

    The index does no locking of its own. Callers that interleave a conflict
    check with other awaits must hold the resource's lock from
    :class:`~booking_engine.engine.locks.KeyedLocks` around the whole
    check-then-insert.
    """

    def __init__(self):
        self._intervals: dict[str, list[Interval]] = {}

    def insert(self, resource_id: str, interval: Interval) -> None:
        """
        Add an interval to the resource's active set.

        Raises:
            BookingConflictError: If the interval overlaps an active interval
        """
        active = self._intervals.setdefault(resource_id, [])
        conflicting = check(interval, active)
        if conflicting is not None:
            raise BookingConflictError(resource_id, interval, conflicting)
        insort(active, interval)

    def remove(self, resource_id: str, interval: Interval) -> bool:
        """
        Remove one interval matching exactly.

        Returns:
            False when the interval was not in the index
        """
        active = self._intervals.get(resource_id, [])
        position = bisect_left(active, interval)
        if position < len(active) and active[position] == interval:
            del active[position]
            if not active:
                del self._intervals[resource_id]
            return True

        logger.warning(
            "Interval not found in availability index",
            extra={
                "resource_id": resource_id,
                "start": interval.start.isoformat(),
                "end": interval.end.isoformat(),
            }
        )
        return False

    def active_intervals(self, resource_id: str) -> tuple[Interval, ...]:
        """Snapshot of the resource's active intervals in ascending start order."""
        return tuple(self._intervals.get(resource_id, ()))

    def replace(self, resource_id: str, intervals: Iterable[Interval]) -> None:
        """
        Install a complete active set for a resource.

        The new set is validated before the old one is dropped, so a failure
        leaves the index unchanged.

        Raises:
            BookingConflictError: If any two of the given intervals overlap
        """
        staged: list[Interval] = []
        for interval in sorted(intervals):
            conflicting = check(interval, staged)
            if conflicting is not None:
                raise BookingConflictError(resource_id, interval, conflicting)
            staged.append(interval)

        if staged:
            self._intervals[resource_id] = staged
        else:
            self._intervals.pop(resource_id, None)

    def resource_ids(self) -> list[str]:
        return sorted(self._intervals)

    def size(self) -> int:
        """Total number of active intervals across all resources."""
        return sum(len(active) for active in self._intervals.values())

    def clear(self) -> None:
        self._intervals.clear()
