"""Booking lifecycle coordination: request, confirm, cancel and hold expiry."""

import logging
import secrets
import string
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from ..core.exceptions import (
    BookingConflictError,
    HoldExpiredError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotFoundError,
    ResourceBusyError,
)
from ..core.observability import metrics_collector
from . import slots
from .conflicts import check
from .domain import (
    BookableOption,
    CancellationReason,
    Reservation,
    ReservationEvent,
    ReservationStatus,
    Resource,
)
from .index import AvailabilityIndex
from .interval import Interval
from .locks import KeyedLocks
from .ports import Clock, ReservationStore, ResourceCatalog

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form reservation timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BookingCoordinator:
    """
    Process-wide entry point of the availability engine.

    Owns the availability index and the per-resource locks. Every write for a
    resource (request, confirm, cancel, expire) runs inside that resource's
    lock, so check-then-insert is atomic per resource while unrelated resources
    proceed concurrently.
    """

    def __init__(
        self,
        catalog: ResourceCatalog,
        store: ReservationStore,
        hold_duration: timedelta,
        clock: Clock = utcnow,
        lock_timeout_seconds: float = 5.0,
        max_range_days: int = 366,
    ):
        """
        Initialize the coordinator.

        Args:
            catalog: Resource catalog lookup
            store: Reservation persistence adapter
            hold_duration: How long a pending reservation may remain unconfirmed
            clock: Source of the current time
            lock_timeout_seconds: Maximum wait for a per-resource lock
            max_range_days: Longest range accepted by availability queries
        """
        self.catalog = catalog
        self.store = store
        self.hold_duration = hold_duration
        self.clock = clock
        self.max_range_days = max_range_days
        self.index = AvailabilityIndex()
        self.locks = KeyedLocks(timeout_seconds=lock_timeout_seconds)

    async def load(self) -> int:
        """
        Rebuild the availability index from persisted active reservations.

        Called once at startup before any request is served.

        Returns:
            Number of active intervals loaded
        """
        by_resource: dict[str, list[Interval]] = defaultdict(list)
        for reservation in await self.store.list_active():
            by_resource[reservation.resource_id].append(reservation.interval)

        self.index.clear()
        for resource_id, intervals in by_resource.items():
            self.index.replace(resource_id, intervals)

        loaded = self.index.size()
        metrics_collector.set_active_intervals(loaded)
        logger.info(
            "Availability index loaded",
            extra={"resources": len(by_resource), "active_intervals": loaded}
        )
        return loaded

    # Read path

    async def check_availability(
        self,
        resource_id: str,
        range_start: date,
        range_end: date,
    ) -> list[BookableOption]:
        """
        Bookable options of a resource over ``[range_start, range_end)``.

        Raises:
            NotFoundError: If the resource is unknown
            InvalidIntervalError: If the range is inverted or too long
        """
        options, _ = await self.availability_snapshot(resource_id, range_start, range_end)
        return options

    async def availability_snapshot(
        self,
        resource_id: str,
        range_start: date,
        range_end: date,
    ) -> tuple[list[BookableOption], list[date]]:
        """
        Bookable options and booked dates of a resource over ``[range_start, range_end)``.

        Both are derived from a single read of the resource's active intervals,
        so a date is never reported as both offered and booked.

        Raises:
            NotFoundError: If the resource is unknown
            InvalidIntervalError: If the range is inverted or too long
        """
        self._validate_range(range_start, range_end)
        resource = await self.catalog.get_resource(resource_id)
        active = self.index.active_intervals(resource_id)
        metrics_collector.record_availability_query(resource.granularity.value)
        options = list(slots.generate(resource, range_start, range_end, active))
        return options, slots.booked_dates(active, range_start, range_end)

    async def booked_dates(self, resource_id: str, range_start: date, range_end: date) -> list[date]:
        """Dates in the range touched by an active reservation of the resource."""
        self._validate_range(range_start, range_end)
        await self.catalog.get_resource(resource_id)
        return slots.booked_dates(self.index.active_intervals(resource_id), range_start, range_end)

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        """
        Get reservation by ID.

        Raises:
            NotFoundError: If the reservation is unknown
        """
        reservation = await self.store.get(reservation_id)
        if reservation is None:
            logger.warning("Reservation not found", extra={"reservation_id": str(reservation_id)})
            raise NotFoundError(resource_type="reservation", resource_id=str(reservation_id))
        return reservation

    async def list_reservations(
        self,
        resource_id: str,
        statuses: Iterable[ReservationStatus] | None = None,
        customer_ref: str | None = None,
    ) -> list[Reservation]:
        """Reservations of a resource ordered by interval, optionally filtered by status and customer."""
        await self.catalog.get_resource(resource_id)
        reservations = await self.store.list_by_resource(resource_id, statuses)
        if customer_ref is not None:
            reservations = [r for r in reservations if r.customer_ref == customer_ref]
        return reservations

    async def list_customer_reservations(
        self,
        customer_ref: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]:
        """A customer's reservations across all resources, ordered by start."""
        return await self.store.list_by_customer(customer_ref, statuses)

    def hold_expires_at(self, reservation: Reservation) -> datetime:
        return reservation.created_at + self.hold_duration

    # Write path

    async def request_booking(
        self,
        resource_id: str,
        interval: Interval,
        customer_ref: str | None = None,
    ) -> Reservation:
        """
        Create a pending reservation if the interval is free.

        Args:
            resource_id: Resource to book
            interval: Interval to occupy
            customer_ref: Optional customer reference

        Returns:
            The new pending reservation

        Raises:
            NotFoundError: If the resource is unknown
            InvalidIntervalError: If the interval does not fit the resource's calendar
            BookingConflictError: If the interval overlaps an active reservation
            ResourceBusyError: If the resource lock could not be acquired in time
        """
        resource = await self.catalog.get_resource(resource_id)

        try:
            slots.validate_interval(resource, interval)
        except InvalidIntervalError:
            metrics_collector.record_booking_request("invalid")
            logger.warning(
                "Booking request rejected - invalid interval",
                extra={"resource_id": resource_id, **interval.to_dict()}
            )
            raise

        try:
            async with self.locks.hold(resource_id):
                conflicting = check(interval, self.index.active_intervals(resource_id))
                if conflicting is not None:
                    raise BookingConflictError(resource_id, interval, conflicting)

                now = self.clock()
                reservation = Reservation(
                    resource_id=resource_id,
                    interval=interval,
                    created_at=now,
                    reference=self._generate_reference(resource, now),
                    customer_ref=customer_ref,
                    events=(ReservationEvent(action="created", at=now, note="Booking requested"),),
                )

                # Persist first; the index only changes once the record exists.
                await self.store.add(reservation)
                self.index.insert(resource_id, interval)

        except BookingConflictError as e:
            metrics_collector.record_booking_request("conflict")
            logger.warning(
                "Booking request rejected - interval already booked",
                extra={
                    "resource_id": resource_id,
                    "requested": interval.to_dict(),
                    "conflicting": e.conflicting.to_dict(),
                }
            )
            raise
        except ResourceBusyError:
            metrics_collector.record_booking_request("busy")
            logger.warning("Booking request rejected - resource busy", extra={"resource_id": resource_id})
            raise

        metrics_collector.record_booking_request("created")
        metrics_collector.set_active_intervals(self.index.size())
        logger.info(
            "Reservation created",
            extra={
                "reservation_id": str(reservation.id),
                "reference": reservation.reference,
                "resource_id": resource_id,
                "customer_ref": customer_ref,
                "hold_expires_at": self.hold_expires_at(reservation).isoformat(),
                **interval.to_dict(),
            }
        )
        return reservation

    async def confirm_booking(self, reservation_id: UUID) -> Reservation:
        """
        Confirm a pending reservation.

        A pending reservation whose hold has already lapsed is expired instead.

        Raises:
            NotFoundError: If the reservation is unknown
            HoldExpiredError: If the hold lapsed before confirmation
            InvalidTransitionError: If the reservation is not pending
        """
        reservation = await self.get_reservation(reservation_id)

        async with self.locks.hold(reservation.resource_id):
            reservation = await self.get_reservation(reservation_id)
            if reservation.status != ReservationStatus.PENDING:
                logger.warning(
                    "Confirmation rejected - reservation not pending",
                    extra={"reservation_id": str(reservation_id), "status": reservation.status.value}
                )
                raise InvalidTransitionError(
                    reservation_id=str(reservation_id),
                    current_status=reservation.status.value,
                    target_status=ReservationStatus.CONFIRMED.value,
                )

            now = self.clock()
            if self._hold_lapsed(reservation, now):
                await self._cancel_locked(reservation, now, CancellationReason.HOLD_EXPIRED)
                raise HoldExpiredError(str(reservation_id), self.hold_expires_at(reservation))

            confirmed = reservation.transition(ReservationStatus.CONFIRMED, now, action="confirmed")
            await self.store.update(confirmed)

        metrics_collector.record_reservation_confirmed()
        logger.info(
            "Reservation confirmed",
            extra={"reservation_id": str(reservation_id), "reference": confirmed.reference}
        )
        return confirmed

    async def cancel_booking(self, reservation_id: UUID) -> Reservation:
        """
        Cancel a pending or confirmed reservation and free its interval.

        Cancelling an already-cancelled reservation is a successful no-op.

        Raises:
            NotFoundError: If the reservation is unknown
        """
        reservation = await self.get_reservation(reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            logger.info("Reservation already cancelled", extra={"reservation_id": str(reservation_id)})
            return reservation

        async with self.locks.hold(reservation.resource_id):
            reservation = await self.get_reservation(reservation_id)
            if reservation.status == ReservationStatus.CANCELLED:
                return reservation
            cancelled = await self._cancel_locked(reservation, self.clock(), CancellationReason.CUSTOMER)

        return cancelled

    async def expire_pending_holds(self, now: datetime | None = None, batch_size: int = 100) -> int:
        """
        Cancel pending reservations whose hold has lapsed at ``now``.

        Candidates are paged by ``(created_at, id)`` and handled one resource
        at a time. Each candidate is re-read under its resource lock and only
        expired if it is still pending and its own ``created_at`` is older than
        the hold duration, so a reservation confirmed or created meanwhile is
        left alone. A resource whose lock is busy costs one lock timeout per
        run; its holds are deferred to the next run while other resources
        are still processed.

        Returns:
            Number of reservations expired
        """
        now = now or self.clock()
        cutoff = now - self.hold_duration
        expired_count = 0
        busy: set[str] = set()
        after: tuple[datetime, UUID] | None = None

        while True:
            batch = await self.store.list_pending_created_before(cutoff, limit=batch_size, after=after)
            if not batch:
                break
            after = (batch[-1].created_at, batch[-1].id)

            by_resource: dict[str, list[Reservation]] = defaultdict(list)
            for candidate in batch:
                if candidate.resource_id not in busy:
                    by_resource[candidate.resource_id].append(candidate)

            for resource_id, candidates in by_resource.items():
                try:
                    async with self.locks.hold(resource_id):
                        for candidate in candidates:
                            current = await self.store.get(candidate.id)
                            if (
                                current is None
                                or current.status != ReservationStatus.PENDING
                                or not self._hold_lapsed(current, now)
                            ):
                                continue
                            await self._cancel_locked(current, now, CancellationReason.HOLD_EXPIRED)
                            expired_count += 1
                except ResourceBusyError:
                    busy.add(resource_id)
                    logger.warning(
                        "Skipping hold expiry - resource busy",
                        extra={"resource_id": resource_id, "deferred": len(candidates)}
                    )

            if len(batch) < batch_size:
                break

        if expired_count > 0 or busy:
            logger.info(
                "Hold expiration batch completed",
                extra={
                    "expired_count": expired_count,
                    "busy_resources": sorted(busy),
                    "cutoff": cutoff.isoformat(),
                }
            )
        return expired_count

    # Internals

    def _validate_range(self, range_start: date, range_end: date) -> None:
        if range_end < range_start:
            raise InvalidIntervalError(
                detail=f"Range end {range_end.isoformat()} is before range start {range_start.isoformat()}"
            )
        if (range_end - range_start).days > self.max_range_days:
            raise InvalidIntervalError(
                detail=f"Availability range may span at most {self.max_range_days} days"
            )

    def _hold_lapsed(self, reservation: Reservation, now: datetime) -> bool:
        return now - reservation.created_at > self.hold_duration

    async def _cancel_locked(
        self,
        reservation: Reservation,
        now: datetime,
        reason: CancellationReason,
    ) -> Reservation:
        """Persist the cancellation, then free the interval. Caller holds the resource lock."""
        action = "expired" if reason == CancellationReason.HOLD_EXPIRED else "cancelled"
        cancelled = reservation.transition(
            ReservationStatus.CANCELLED,
            now,
            action=action,
            note=f"Previous status: {reservation.status.value}",
            reason=reason,
        )
        await self.store.update(cancelled)
        self.index.remove(reservation.resource_id, reservation.interval)

        metrics_collector.record_reservation_cancelled(reason.value)
        metrics_collector.set_active_intervals(self.index.size())
        logger.info(
            "Reservation cancelled",
            extra={
                "reservation_id": str(reservation.id),
                "reference": reservation.reference,
                "resource_id": reservation.resource_id,
                "previous_status": reservation.status.value,
                "reason": reason.value,
            }
        )
        return cancelled

    def _generate_reference(self, resource: Resource, now: datetime) -> str:
        """Human-readable booking reference such as ``CAR-482913-7QXK``."""
        alphabet = string.ascii_uppercase + string.digits
        stamp = f"{int(now.timestamp() * 1000) % 1_000_000:06d}"
        suffix = ''.join(secrets.choice(alphabet) for _ in range(4))
        return f"{resource.kind.value.upper()}-{stamp}-{suffix}"
