"""Unit tests for slot generation and interval validation."""

from datetime import date, datetime

import pytest

from booking_engine.core.exceptions import InvalidIntervalError
from booking_engine.engine.domain import Granularity, Resource, ResourceKind
from booking_engine.engine.interval import Interval
from booking_engine.engine.slots import booked_dates, generate, interval_for, validate_interval


def test_generate_day_resource_omits_booked_date(car):
    """Test that a booking for May 3 removes exactly May 3 from the options."""
    active = [Interval.from_dates(date(2024, 5, 3), date(2024, 5, 4))]

    options = list(generate(car, date(2024, 5, 1), date(2024, 5, 8), active))

    assert [option.day for option in options] == [
        date(2024, 5, 1),
        date(2024, 5, 2),
        date(2024, 5, 4),
        date(2024, 5, 5),
        date(2024, 5, 6),
        date(2024, 5, 7),
    ]
    assert all(option.slot is None for option in options)
    assert options[0].interval == Interval.from_dates(date(2024, 5, 1), date(2024, 5, 2))


def test_generate_is_lazy_and_repeatable(car):
    """Test that generate returns an iterator that yields the same sequence on every call."""
    options = generate(car, date(2024, 5, 1), date(2024, 5, 4), [])

    assert next(options).day == date(2024, 5, 1)
    assert list(generate(car, date(2024, 5, 1), date(2024, 5, 4), [])) == list(
        generate(car, date(2024, 5, 1), date(2024, 5, 4), [])
    )


def test_generate_slot_resource_follows_calendar_and_template_order(tour):
    """Test slot options on operating days only, in template order."""
    # Thursday May 2 and Saturday May 4 operate; Wed, Fri and Sun do not
    options = list(generate(tour, date(2024, 5, 1), date(2024, 5, 6), []))

    assert [(option.day, option.slot) for option in options] == [
        (date(2024, 5, 2), "09:00"),
        (date(2024, 5, 2), "13:00"),
        (date(2024, 5, 2), "17:00"),
        (date(2024, 5, 4), "09:00"),
        (date(2024, 5, 4), "13:00"),
        (date(2024, 5, 4), "17:00"),
    ]
    assert options[0].interval == Interval(datetime(2024, 5, 2, 9), datetime(2024, 5, 2, 13))
    assert options[2].interval == Interval(datetime(2024, 5, 2, 17), datetime(2024, 5, 3))


def test_generate_slot_resource_skips_booked_slot(tour):
    """Test that a booked slot is omitted while its neighbours stay bookable."""
    active = [Interval(datetime(2024, 5, 2, 13), datetime(2024, 5, 2, 17))]

    options = list(generate(tour, date(2024, 5, 2), date(2024, 5, 3), active))

    assert [option.slot for option in options] == ["09:00", "17:00"]


def test_generate_includes_extra_dates(tour_factory):
    """Test that explicit dates operate outside the weekday set."""
    resource = tour_factory(dates=frozenset({date(2024, 5, 1)}))

    options = list(generate(resource, date(2024, 5, 1), date(2024, 5, 2), []))

    assert {option.day for option in options} == {date(2024, 5, 1)}


def test_generate_empty_and_inverted_ranges(car):
    """Test that an empty range yields nothing and an inverted one is invalid."""
    assert list(generate(car, date(2024, 5, 1), date(2024, 5, 1), [])) == []

    with pytest.raises(InvalidIntervalError):
        generate(car, date(2024, 5, 2), date(2024, 5, 1), [])


def test_generate_unavailable_resource_yields_nothing(car_factory):
    """Test that a resource not currently offered has no options."""
    resource = car_factory(is_available=False)

    assert list(generate(resource, date(2024, 5, 1), date(2024, 5, 8), [])) == []


def test_validate_day_resource(car_factory):
    """Test whole-day validation for day resources."""
    weekdays_only = car_factory(weekdays=frozenset(range(5)))

    validate_interval(weekdays_only, Interval.from_dates(date(2024, 5, 1), date(2024, 5, 4)))

    with pytest.raises(InvalidIntervalError):
        validate_interval(weekdays_only, Interval(datetime(2024, 5, 1, 10), datetime(2024, 5, 2)))

    # Saturday May 4 is outside the calendar
    with pytest.raises(InvalidIntervalError) as exc_info:
        validate_interval(weekdays_only, Interval.from_dates(date(2024, 5, 3), date(2024, 5, 5)))
    assert "2024-05-04" in exc_info.value.problem_details["detail"]


def test_validate_slot_resource(tour):
    """Test that slot resources only accept exact template slots on operating days."""
    validate_interval(tour, Interval(datetime(2024, 5, 2, 9), datetime(2024, 5, 2, 13)))

    with pytest.raises(InvalidIntervalError):
        validate_interval(tour, Interval(datetime(2024, 5, 2, 9), datetime(2024, 5, 2, 12)))

    # Friday May 3 is not an operating day
    with pytest.raises(InvalidIntervalError):
        validate_interval(tour, Interval(datetime(2024, 5, 3, 9), datetime(2024, 5, 3, 13)))


def test_validate_unavailable_resource(car_factory):
    """Test that bookings on an unavailable resource are rejected."""
    with pytest.raises(InvalidIntervalError):
        validate_interval(
            car_factory(is_available=False),
            Interval.from_dates(date(2024, 5, 1), date(2024, 5, 2)),
        )


def test_interval_for(car, tour):
    """Test the interval a date or date and slot maps to."""
    assert interval_for(car, date(2024, 5, 1)) == Interval.from_dates(date(2024, 5, 1), date(2024, 5, 2))
    assert interval_for(tour, date(2024, 5, 2), "13:00") == Interval(
        datetime(2024, 5, 2, 13), datetime(2024, 5, 2, 17)
    )

    with pytest.raises(InvalidIntervalError):
        interval_for(car, date(2024, 5, 1), "09:00")
    with pytest.raises(InvalidIntervalError):
        interval_for(tour, date(2024, 5, 2), "11:00")


def test_booked_dates_within_range():
    """Test that booked dates are clipped to the range and sorted."""
    active = [
        Interval.from_dates(date(2024, 4, 29), date(2024, 5, 2)),
        Interval(datetime(2024, 5, 5, 9), datetime(2024, 5, 5, 13)),
    ]

    assert booked_dates(active, date(2024, 5, 1), date(2024, 5, 6)) == [date(2024, 5, 1), date(2024, 5, 5)]


def test_resource_validation():
    """Test resource construction rules."""
    with pytest.raises(ValueError):
        Resource(id="tour-x", kind=ResourceKind.TOUR, granularity=Granularity.SLOT)

    with pytest.raises(ValueError):
        Resource(
            id="tour-x",
            kind=ResourceKind.TOUR,
            granularity=Granularity.SLOT,
            slot_templates=("13:00", "09:00"),
        )

    with pytest.raises(ValueError):
        Resource(id="car-x", kind=ResourceKind.CAR, granularity=Granularity.DAY, weekdays=frozenset({7}))

    with pytest.raises(ValueError):
        Resource(id="car-x", kind=ResourceKind.CAR, granularity=Granularity.DAY, slot_templates=("09:00",))
