"""Domain records shared by the engine, its adapters and the HTTP layer."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum
from uuid import UUID, uuid4

from .interval import Interval

ALL_WEEKDAYS = frozenset(range(7))


class ResourceKind(str, Enum):
    """Kind of bookable resource."""
    CAR = "car"
    TOUR = "tour"


class Granularity(str, Enum):
    """How a resource is booked: whole days, or template time slots."""
    DAY = "day"
    SLOT = "slot"


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class CancellationReason(str, Enum):
    """Why a reservation ended up cancelled."""
    CUSTOMER = "customer"
    HOLD_EXPIRED = "hold_expired"


ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


def parse_slot_label(label: str) -> time:
    """Parse an ``HH:MM`` slot template label."""
    try:
        return datetime.strptime(label, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValueError(f"Slot label '{label}' is not in HH:MM format") from None


@dataclass(frozen=True)
class Resource:
    """A bookable car or tour, as provided by the resource catalog."""

    id: str
    kind: ResourceKind
    granularity: Granularity
    name: str = ""
    weekdays: frozenset[int] = ALL_WEEKDAYS
    dates: frozenset[date] = frozenset()
    slot_templates: tuple[str, ...] = ()
    is_available: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Resource id must not be empty")
        if any(day not in ALL_WEEKDAYS for day in self.weekdays):
            raise ValueError(f"Weekdays must be between 0 (Monday) and 6 (Sunday): {sorted(self.weekdays)}")

        if self.granularity == Granularity.SLOT:
            if not self.slot_templates:
                raise ValueError("Slot resources need at least one slot template")
            starts = [parse_slot_label(label) for label in self.slot_templates]
            if any(later <= earlier for earlier, later in zip(starts, starts[1:])):
                raise ValueError(f"Slot templates must be strictly ascending: {list(self.slot_templates)}")
        elif self.slot_templates:
            raise ValueError("Day resources do not take slot templates")

    def operates_on(self, day: date) -> bool:
        """True iff the resource is offered on ``day``."""
        return day in self.dates or day.weekday() in self.weekdays


@dataclass(frozen=True)
class BookableOption:
    """A date, or a date and slot, offered to a customer as available."""

    resource_id: str
    day: date
    interval: Interval
    slot: str | None = None


@dataclass(frozen=True)
class ReservationEvent:
    """One entry of a reservation's append-only history."""

    action: str
    at: datetime
    note: str | None = None


@dataclass(frozen=True)
class Reservation:
    """
    A booking attempt bound to a resource and an interval.

    Records are immutable; status changes produce a new record through
    :meth:`transition`, which appends to the event history.
    """

    resource_id: str
    interval: Interval
    created_at: datetime
    reference: str
    status: ReservationStatus = ReservationStatus.PENDING
    customer_ref: str | None = None
    cancellation_reason: CancellationReason | None = None
    id: UUID = field(default_factory=uuid4)
    events: tuple[ReservationEvent, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def transition(
        self,
        status: ReservationStatus,
        at: datetime,
        action: str,
        note: str | None = None,
        reason: CancellationReason | None = None,
    ) -> "Reservation":
        return replace(
            self,
            status=status,
            cancellation_reason=reason,
            events=self.events + (ReservationEvent(action=action, at=at, note=note),),
        )
