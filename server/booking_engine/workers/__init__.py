"""Background workers for the booking engine."""

from .hold_expiry_worker import HoldExpiryWorker
from .manager import WorkerManager

__all__ = ["HoldExpiryWorker", "WorkerManager"]
