"""Background worker for expiring unconfirmed holds."""

import logging

from ..engine.coordinator import BookingCoordinator
from .base import BaseWorker

logger = logging.getLogger(__name__)


class HoldExpiryWorker(BaseWorker):
    """
    Background worker that cancels pending reservations past their hold.

    Each run frees the intervals of reservations that were not confirmed in
    time, making them bookable again.
    """

    def __init__(self, coordinator: BookingCoordinator, interval_seconds: float = 60):
        """
        Initialize the hold expiry worker.

        Args:
            coordinator: Coordinator owning the reservations to expire
            interval_seconds: How often to check for lapsed holds (default: 60s)
        """
        super().__init__(name="HoldExpiry", interval_seconds=interval_seconds)
        self.coordinator = coordinator

    async def process(self) -> None:
        """Expire lapsed holds."""
        expired_count = await self.coordinator.expire_pending_holds()
        if expired_count > 0:
            logger.info(
                "Expired lapsed holds",
                extra={"expired_count": expired_count, "worker": self.name}
            )
