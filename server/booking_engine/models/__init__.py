"""Models module exporting all database models."""

from .reservation import ReservationEventRecord, ReservationRecord
from .resource import ResourceRecord

__all__ = [
    "ResourceRecord",
    "ReservationRecord",
    "ReservationEventRecord",
]
