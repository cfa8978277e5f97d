"""Tests for the SQLAlchemy catalog and reservation store."""

from datetime import date, datetime, timedelta

import pytest

from booking_engine.core.exceptions import BookingConflictError, ConflictError, NotFoundError
from booking_engine.engine.coordinator import BookingCoordinator
from booking_engine.engine.domain import CancellationReason, Reservation, ReservationEvent, ReservationStatus
from booking_engine.engine.interval import Interval
from booking_engine.services import SqlAlchemyReservationStore, SqlAlchemyResourceCatalog

MAY_1_2 = Interval.from_dates(date(2024, 5, 1), date(2024, 5, 2))
CREATED_AT = datetime(2024, 4, 1, 12, 0)


def _reservation(resource_id: str = "car-1", interval: Interval = MAY_1_2, **overrides) -> Reservation:
    return Reservation(
        resource_id=resource_id,
        interval=interval,
        created_at=overrides.pop("created_at", CREATED_AT),
        reference=overrides.pop("reference", "CAR-000001-AAAA"),
        events=(ReservationEvent(action="created", at=CREATED_AT),),
        **overrides,
    )


@pytest.mark.asyncio
async def test_catalog_create_and_get(session_factory, tour):
    """Test that a resource round-trips through the catalog table."""
    catalog = SqlAlchemyResourceCatalog(session_factory)

    await catalog.create_resource(tour)
    loaded = await catalog.get_resource("tour-1")

    assert loaded == tour


@pytest.mark.asyncio
async def test_catalog_duplicate_and_missing(session_factory, car):
    """Test conflict on duplicate IDs and not found on unknown ones."""
    catalog = SqlAlchemyResourceCatalog(session_factory)
    await catalog.create_resource(car)

    with pytest.raises(ConflictError):
        await catalog.create_resource(car)

    with pytest.raises(NotFoundError):
        await catalog.get_resource("car-404")


@pytest.mark.asyncio
async def test_store_add_get_and_update(session_factory, car):
    """Test persisting a reservation and appending to its history."""
    await SqlAlchemyResourceCatalog(session_factory).create_resource(car)
    store = SqlAlchemyReservationStore(session_factory)
    reservation = _reservation(customer_ref="customer_1")

    await store.add(reservation)
    assert await store.get(reservation.id) == reservation

    confirmed = reservation.transition(ReservationStatus.CONFIRMED, CREATED_AT + timedelta(minutes=1), "confirmed")
    await store.update(confirmed)
    cancelled = confirmed.transition(
        ReservationStatus.CANCELLED,
        CREATED_AT + timedelta(minutes=2),
        "cancelled",
        reason=CancellationReason.CUSTOMER,
    )
    await store.update(cancelled)

    loaded = await store.get(reservation.id)
    assert loaded.status == ReservationStatus.CANCELLED
    assert loaded.cancellation_reason == CancellationReason.CUSTOMER
    assert [event.action for event in loaded.events] == ["created", "confirmed", "cancelled"]


@pytest.mark.asyncio
async def test_store_update_unknown(session_factory):
    """Test that updating a reservation that was never stored raises not found."""
    store = SqlAlchemyReservationStore(session_factory)

    with pytest.raises(NotFoundError):
        await store.update(_reservation())


@pytest.mark.asyncio
async def test_store_rejects_second_active_reservation_for_same_interval(session_factory, car):
    """Test the partial unique index on active intervals."""
    await SqlAlchemyResourceCatalog(session_factory).create_resource(car)
    store = SqlAlchemyReservationStore(session_factory)
    first = _reservation()
    await store.add(first)

    with pytest.raises(BookingConflictError):
        await store.add(_reservation(reference="CAR-000002-BBBB"))

    # Once the first is cancelled the interval may be held again
    await store.update(first.transition(ReservationStatus.CANCELLED, CREATED_AT, "cancelled"))
    await store.add(_reservation(reference="CAR-000003-CCCC"))


@pytest.mark.asyncio
async def test_store_queries(session_factory, car):
    """Test listing by resource, active reservations and lapsed holds."""
    await SqlAlchemyResourceCatalog(session_factory).create_resource(car)
    store = SqlAlchemyReservationStore(session_factory)

    late = _reservation(
        interval=Interval.from_dates(date(2024, 5, 5), date(2024, 5, 6)),
        reference="CAR-000001-LATE",
        created_at=CREATED_AT + timedelta(minutes=30),
    )
    early = _reservation(reference="CAR-000002-EARL")
    confirmed = _reservation(
        interval=Interval.from_dates(date(2024, 5, 3), date(2024, 5, 4)),
        reference="CAR-000003-CONF",
        status=ReservationStatus.CONFIRMED,
    )
    for reservation in (late, early, confirmed):
        await store.add(reservation)

    listed = await store.list_by_resource("car-1")
    assert [r.id for r in listed] == [early.id, confirmed.id, late.id]

    pending = await store.list_by_resource("car-1", [ReservationStatus.PENDING])
    assert {r.id for r in pending} == {early.id, late.id}

    assert len(await store.list_active()) == 3

    lapsed = await store.list_pending_created_before(CREATED_AT + timedelta(minutes=16))
    assert [r.id for r in lapsed] == [early.id]


@pytest.mark.asyncio
async def test_coordinator_on_database_backend(session_factory, car):
    """Test the full lifecycle and a restart against the database adapters."""
    catalog = SqlAlchemyResourceCatalog(session_factory)
    store = SqlAlchemyReservationStore(session_factory)
    await catalog.create_resource(car)

    coordinator = BookingCoordinator(catalog, store, hold_duration=timedelta(minutes=15))
    reservation = await coordinator.request_booking("car-1", MAY_1_2)
    await coordinator.confirm_booking(reservation.id)

    restarted = BookingCoordinator(catalog, store, hold_duration=timedelta(minutes=15))
    assert await restarted.load() == 1

    with pytest.raises(BookingConflictError):
        await restarted.request_booking("car-1", MAY_1_2)

    await restarted.cancel_booking(reservation.id)
    rebooked = await restarted.request_booking("car-1", MAY_1_2)
    assert rebooked.status == ReservationStatus.PENDING


@pytest.mark.asyncio
async def test_store_list_by_customer(session_factory, car, tour):
    """Test listing a customer's reservations across resources through the customer_ref index."""
    catalog = SqlAlchemyResourceCatalog(session_factory)
    await catalog.create_resource(car)
    await catalog.create_resource(tour)
    store = SqlAlchemyReservationStore(session_factory)

    tour_slot = _reservation(
        resource_id="tour-1",
        interval=Interval(datetime(2024, 5, 2, 9, 0), datetime(2024, 5, 2, 13, 0)),
        reference="TOUR-000001-AAAA",
        customer_ref="customer_1",
    )
    car_day = _reservation(reference="CAR-000001-MINE", customer_ref="customer_1")
    cancelled = _reservation(
        interval=Interval.from_dates(date(2024, 5, 5), date(2024, 5, 6)),
        reference="CAR-000002-GONE",
        customer_ref="customer_1",
        status=ReservationStatus.CANCELLED,
    )
    other = _reservation(
        interval=Interval.from_dates(date(2024, 5, 3), date(2024, 5, 4)),
        reference="CAR-000003-OTHR",
        customer_ref="customer_2",
    )
    for reservation in (tour_slot, cancelled, car_day, other):
        await store.add(reservation)

    mine = await store.list_by_customer("customer_1")
    assert [r.id for r in mine] == [car_day.id, tour_slot.id, cancelled.id]

    active = await store.list_by_customer("customer_1", [ReservationStatus.PENDING, ReservationStatus.CONFIRMED])
    assert [r.id for r in active] == [car_day.id, tour_slot.id]

    assert await store.list_by_customer("customer_404") == []


@pytest.mark.asyncio
async def test_store_pages_lapsed_holds_by_cursor(session_factory, car):
    """Test that lapsed holds are paged by (created_at, id) without repeats or gaps."""
    await SqlAlchemyResourceCatalog(session_factory).create_resource(car)
    store = SqlAlchemyReservationStore(session_factory)

    holds = [
        _reservation(
            interval=Interval.from_dates(date(2024, 5, day), date(2024, 5, day + 1)),
            reference=f"CAR-00000{day}-PAGE",
            created_at=CREATED_AT if day < 4 else CREATED_AT + timedelta(minutes=1),
        )
        for day in range(1, 6)
    ]
    for reservation in holds:
        await store.add(reservation)
    cutoff = CREATED_AT + timedelta(hours=1)

    paged = []
    after = None
    while True:
        page = await store.list_pending_created_before(cutoff, limit=2, after=after)
        if not page:
            break
        paged.extend(page)
        after = (page[-1].created_at, page[-1].id)

    expected = sorted(holds, key=lambda r: (r.created_at, r.id))
    assert [r.id for r in paged] == [r.id for r in expected]
