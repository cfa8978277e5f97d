"""SQLAlchemy-backed reservation store."""

import logging
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import BookingConflictError, NotFoundError
from ..engine.domain import (
    ACTIVE_STATUSES,
    CancellationReason,
    Reservation,
    ReservationEvent,
    ReservationStatus,
)
from ..engine.interval import Interval
from ..models.reservation import ReservationEventRecord, ReservationRecord

logger = logging.getLogger(__name__)

_ACTIVE_INTERVAL_CONSTRAINT_MARKERS = (
    "uq_reservation_active_interval",
    "reservations.resource_id, reservations.starts_at, reservations.ends_at",
)


def _to_domain(record: ReservationRecord) -> Reservation:
    return Reservation(
        id=record.id,
        resource_id=record.resource_id,
        interval=Interval(record.starts_at, record.ends_at),
        created_at=record.created_at,
        reference=record.reference,
        status=ReservationStatus(record.status),
        customer_ref=record.customer_ref,
        cancellation_reason=(
            CancellationReason(record.cancellation_reason) if record.cancellation_reason else None
        ),
        events=tuple(
            ReservationEvent(action=event.action, at=event.at, note=event.note)
            for event in record.events
        ),
    )


def _event_records(events: Iterable[ReservationEvent], first_sequence: int) -> list[ReservationEventRecord]:
    return [
        ReservationEventRecord(sequence=first_sequence + offset, action=event.action, at=event.at, note=event.note)
        for offset, event in enumerate(events)
    ]


class SqlAlchemyReservationStore:
    """
    Reservation store on the relational database.

    Each call runs in its own session and commits before returning. A partial
    unique index on ``(resource_id, starts_at, ends_at)`` over non-cancelled
    rows backs up the in-process conflict check.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def add(self, reservation: Reservation) -> None:
        """
        Insert a new reservation with its history.

        Raises:
            BookingConflictError: If an active reservation holds the same interval
        """
        record = ReservationRecord(
            id=reservation.id,
            resource_id=reservation.resource_id,
            starts_at=reservation.interval.start,
            ends_at=reservation.interval.end,
            status=reservation.status.value,
            reference=reservation.reference,
            customer_ref=reservation.customer_ref,
            cancellation_reason=reservation.cancellation_reason.value if reservation.cancellation_reason else None,
            created_at=reservation.created_at,
        )
        record.events = _event_records(reservation.events, first_sequence=0)

        async with self.session_factory() as db:
            db.add(record)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                if any(marker in str(e.orig) for marker in _ACTIVE_INTERVAL_CONSTRAINT_MARKERS):
                    logger.warning(
                        "Reservation insert hit active interval constraint",
                        extra={"resource_id": reservation.resource_id, **reservation.interval.to_dict()}
                    )
                    raise BookingConflictError(
                        reservation.resource_id, reservation.interval, reservation.interval
                    ) from e
                raise

    async def update(self, reservation: Reservation) -> None:
        """
        Persist a status change and append the new history entries.

        Raises:
            NotFoundError: If the reservation was never stored
        """
        async with self.session_factory() as db:
            record = await self._get_record(db, reservation.id)
            if record is None:
                raise NotFoundError(resource_type="reservation", resource_id=str(reservation.id))

            record.status = reservation.status.value
            record.cancellation_reason = (
                reservation.cancellation_reason.value if reservation.cancellation_reason else None
            )
            stored = len(record.events)
            record.events.extend(_event_records(reservation.events[stored:], first_sequence=stored))

            await db.commit()

    async def get(self, reservation_id: UUID) -> Reservation | None:
        async with self.session_factory() as db:
            record = await self._get_record(db, reservation_id)
            return _to_domain(record) if record else None

    async def list_by_resource(
        self,
        resource_id: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]:
        stmt = select(ReservationRecord).where(ReservationRecord.resource_id == resource_id)
        if statuses is not None:
            stmt = stmt.where(ReservationRecord.status.in_([status.value for status in statuses]))
        stmt = stmt.order_by(ReservationRecord.starts_at, ReservationRecord.ends_at, ReservationRecord.created_at)
        return await self._fetch(stmt)

    async def list_by_customer(
        self,
        customer_ref: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]:
        stmt = select(ReservationRecord).where(ReservationRecord.customer_ref == customer_ref)
        if statuses is not None:
            stmt = stmt.where(ReservationRecord.status.in_([status.value for status in statuses]))
        stmt = stmt.order_by(ReservationRecord.starts_at, ReservationRecord.created_at)
        return await self._fetch(stmt)

    async def list_active(self) -> list[Reservation]:
        stmt = select(ReservationRecord).where(
            ReservationRecord.status.in_([status.value for status in ACTIVE_STATUSES])
        )
        return await self._fetch(stmt)

    async def list_pending_created_before(
        self,
        cutoff: datetime,
        limit: int = 100,
        after: tuple[datetime, UUID] | None = None,
    ) -> list[Reservation]:
        stmt = select(ReservationRecord).where(
            ReservationRecord.status == ReservationStatus.PENDING.value,
            ReservationRecord.created_at < cutoff,
        )
        if after is not None:
            after_created_at, after_id = after
            stmt = stmt.where(
                or_(
                    ReservationRecord.created_at > after_created_at,
                    and_(ReservationRecord.created_at == after_created_at, ReservationRecord.id > after_id),
                )
            )
        stmt = stmt.order_by(ReservationRecord.created_at, ReservationRecord.id).limit(limit)
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> list[Reservation]:
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return [_to_domain(record) for record in result.scalars()]

    @staticmethod
    async def _get_record(db: AsyncSession, reservation_id: UUID) -> ReservationRecord | None:
        stmt = select(ReservationRecord).where(ReservationRecord.id == reservation_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
