"""Booking availability engine: intervals, conflict checks, slot generation and lifecycle."""

from .conflicts import check
from .coordinator import BookingCoordinator, utcnow
from .domain import (
    BookableOption,
    CancellationReason,
    Granularity,
    Reservation,
    ReservationStatus,
    Resource,
    ResourceKind,
)
from .index import AvailabilityIndex
from .interval import Interval, contains, day_interval, overlaps
from .memory import InMemoryReservationStore, InMemoryResourceCatalog
from .slots import generate, interval_for

__all__ = [
    "AvailabilityIndex",
    "BookableOption",
    "BookingCoordinator",
    "CancellationReason",
    "Granularity",
    "InMemoryReservationStore",
    "InMemoryResourceCatalog",
    "Interval",
    "Reservation",
    "ReservationStatus",
    "Resource",
    "ResourceKind",
    "check",
    "contains",
    "day_interval",
    "generate",
    "interval_for",
    "overlaps",
    "utcnow",
]
