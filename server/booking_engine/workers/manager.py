"""Worker manager for coordinating background tasks."""

import asyncio
import logging

from ..core.config import Settings
from ..engine.coordinator import BookingCoordinator
from .base import BaseWorker
from .hold_expiry_worker import HoldExpiryWorker

logger = logging.getLogger(__name__)


class WorkerManager:
    """
    Manages background workers for the application.

    Coordinates starting, stopping, and monitoring of all background workers.
    """

    def __init__(self, coordinator: BookingCoordinator, settings: Settings):
        self.workers: dict[str, BaseWorker] = {
            "hold_expiry": HoldExpiryWorker(
                coordinator,
                interval_seconds=settings.hold_expiry_interval_seconds,
            ),
        }
        logger.info("Initialized workers", extra={"workers": list(self.workers)})

    async def start_all(self) -> None:
        """Start all workers."""
        for worker in self.workers.values():
            await worker.start()
        logger.info("Started workers", extra={"count": len(self.workers)})

    async def stop_all(self) -> None:
        """Stop all workers, logging any that fail to stop cleanly."""
        results = await asyncio.gather(
            *(worker.stop() for worker in self.workers.values()),
            return_exceptions=True,
        )
        for name, result in zip(self.workers, results):
            if isinstance(result, Exception):
                logger.error("Error stopping worker", extra={"worker": name, "error": str(result)})
        logger.info("All workers stopped")

    def get_worker(self, name: str) -> BaseWorker:
        """
        Get a specific worker by name.

        Raises:
            KeyError: If worker not found
        """
        return self.workers[name]

    def get_worker_status(self) -> dict[str, bool]:
        """Map of worker names to their running status."""
        return {name: worker.running for name, worker in self.workers.items()}
