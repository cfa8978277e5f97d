"""Expansion of a resource's operating calendar into bookable options."""

from collections.abc import Iterator, Sequence
from datetime import date, datetime, time

from ..core.exceptions import InvalidIntervalError
from .conflicts import check
from .domain import BookableOption, Granularity, Resource, parse_slot_label
from .interval import ONE_DAY, Interval


def _date_range(range_start: date, range_end: date) -> Iterator[date]:
    current = range_start
    while current < range_end:
        yield current
        current += ONE_DAY


def slot_bounds(resource: Resource, day: date) -> list[tuple[str, Interval]]:
    """
    The intervals of every template slot on ``day``, in template order.

    Each slot runs until the next template slot starts; the last one runs to
    the end of the day.
    """
    starts = [datetime.combine(day, parse_slot_label(label)) for label in resource.slot_templates]
    ends = starts[1:] + [datetime.combine(day + ONE_DAY, time.min)]
    return [
        (label, Interval(start, end))
        for label, start, end in zip(resource.slot_templates, starts, ends)
    ]


def interval_for(resource: Resource, day: date, slot: str | None = None) -> Interval:
    """
    The interval a booking of ``day`` (and ``slot``) would occupy.

    Raises:
        InvalidIntervalError: If the slot does not match the resource's granularity
    """
    if resource.granularity == Granularity.DAY:
        if slot is not None:
            raise InvalidIntervalError(detail=f"Resource {resource.id} is booked by whole days, not slots")
        return Interval.from_dates(day, day + ONE_DAY)

    for label, interval in slot_bounds(resource, day):
        if label == slot:
            return interval
    raise InvalidIntervalError(
        detail=f"Resource {resource.id} has no slot '{slot}'; slots are {list(resource.slot_templates)}"
    )


def validate_interval(resource: Resource, interval: Interval) -> None:
    """
    Check that ``interval`` is bookable on ``resource`` ignoring other reservations.

    Day resources take whole days from midnight to midnight; slot resources
    take exactly one template slot. Every date covered must be an operating day.

    Raises:
        InvalidIntervalError: If the interval does not fit the resource
    """
    if not resource.is_available:
        raise InvalidIntervalError(
            detail=f"Resource {resource.id} is not currently offered",
            start=interval.start,
            end=interval.end,
        )

    if resource.granularity == Granularity.DAY:
        if interval.start.time() != time.min or interval.end.time() != time.min:
            raise InvalidIntervalError(
                detail=f"Resource {resource.id} is booked by whole days; bounds must fall on midnight",
                start=interval.start,
                end=interval.end,
            )
    else:
        day = interval.start.date()
        if interval not in (bounds for _, bounds in slot_bounds(resource, day)):
            raise InvalidIntervalError(
                detail=f"Interval does not match any slot of resource {resource.id}",
                start=interval.start,
                end=interval.end,
            )

    closed = [day for day in interval.days() if not resource.operates_on(day)]
    if closed:
        raise InvalidIntervalError(
            detail=f"Resource {resource.id} does not operate on {closed[0].isoformat()}",
            start=interval.start,
            end=interval.end,
        )


def generate(
    resource: Resource,
    range_start: date,
    range_end: date,
    active_intervals: Sequence[Interval],
) -> Iterator[BookableOption]:
    """
    Lazily yield the bookable options of ``resource`` in ``[range_start, range_end)``.

    Options come in ascending date order and, within a date, in slot template
    order. Dates outside the operating calendar and options overlapping an
    active interval are skipped. The generator reads only its arguments, so
    calling it again with the same inputs yields the same sequence.

    Args:
        resource: Resource to expand
        range_start: First date of the range
        range_end: Date after the last date of the range
        active_intervals: Sorted active intervals of the resource

    Raises:
        InvalidIntervalError: If ``range_end`` is before ``range_start``
    """
    if range_end < range_start:
        raise InvalidIntervalError(
            detail=f"Range end {range_end.isoformat()} is before range start {range_start.isoformat()}"
        )
    return _generate(resource, range_start, range_end, active_intervals)


def _generate(
    resource: Resource,
    range_start: date,
    range_end: date,
    active_intervals: Sequence[Interval],
) -> Iterator[BookableOption]:
    if not resource.is_available:
        return

    for day in _date_range(range_start, range_end):
        if not resource.operates_on(day):
            continue

        if resource.granularity == Granularity.DAY:
            candidates = [(None, Interval.from_dates(day, day + ONE_DAY))]
        else:
            candidates = slot_bounds(resource, day)

        for slot, interval in candidates:
            if check(interval, active_intervals) is None:
                yield BookableOption(resource_id=resource.id, day=day, interval=interval, slot=slot)


def booked_dates(active_intervals: Sequence[Interval], range_start: date, range_end: date) -> list[date]:
    """Dates in ``[range_start, range_end)`` touched by at least one active interval."""
    touched = {
        day
        for interval in active_intervals
        for day in interval.days()
        if range_start <= day < range_end
    }
    return sorted(touched)
