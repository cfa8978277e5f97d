"""Persistence adapters for the booking engine."""

from .factory import build_coordinator
from .reservation_store import SqlAlchemyReservationStore
from .resource_catalog import SqlAlchemyResourceCatalog

__all__ = [
    "SqlAlchemyReservationStore",
    "SqlAlchemyResourceCatalog",
    "build_coordinator",
]
