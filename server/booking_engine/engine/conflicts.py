"""Overlap detection against a resource's active intervals."""

from bisect import bisect_left, bisect_right
from typing import Sequence

from .interval import Interval


def check(proposed: Interval, active_intervals: Sequence[Interval]) -> Interval | None:
    """
    Return the earliest active interval that overlaps ``proposed``, or None.

    ``active_intervals`` must be sorted by start and pairwise non-overlapping,
    which is what the availability index maintains. Under that invariant the
    ends are sorted as well, so two binary searches bound the candidates:
    intervals starting before ``proposed.end`` and ending after
    ``proposed.start``.

    Args:
        proposed: Interval a customer wants to book
        active_intervals: Occupied intervals of the same resource

    Returns:
        The first conflicting interval, for diagnostics, or None
    """
    upper = bisect_left(active_intervals, proposed.end, key=lambda iv: iv.start)
    lower = bisect_right(active_intervals, proposed.start, hi=upper, key=lambda iv: iv.end)
    if lower < upper:
        return active_intervals[lower]
    return None


def is_free(proposed: Interval, active_intervals: Sequence[Interval]) -> bool:
    return check(proposed, active_intervals) is None
