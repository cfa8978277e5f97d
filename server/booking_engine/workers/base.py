"""Base worker class for background tasks."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    Abstract base class for background workers.

    Runs :meth:`process` every ``interval_seconds`` until stopped. A failing
    iteration is logged and retried on the next tick.
    """

    def __init__(self, name: str, interval_seconds: float = 60):
        """
        Initialize the worker.

        Args:
            name: Worker name for logging
            interval_seconds: How often to run the task
        """
        self.name = name
        self.interval_seconds = interval_seconds
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @abstractmethod
    async def process(self) -> None:
        """Process one iteration of the background task."""

    async def start(self) -> None:
        """Start the worker."""
        if self.running:
            logger.warning("Worker is already running", extra={"worker": self.name})
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name=f"worker-{self.name}")
        logger.info(
            "Worker started",
            extra={"worker": self.name, "interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the worker, letting an in-flight iteration finish."""
        if not self.running:
            logger.warning("Worker is not running", extra={"worker": self.name})
            return

        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Worker stopped", extra={"worker": self.name})

    async def _run(self) -> None:
        """Main worker loop."""
        while not self._stopping.is_set():
            start_time = time.monotonic()
            try:
                await self.process()
            except Exception as e:
                logger.error(
                    "Worker iteration failed",
                    exc_info=True,
                    extra={"worker": self.name, "error": str(e)}
                )

            duration = time.monotonic() - start_time
            logger.debug(
                "Worker iteration completed",
                extra={"worker": self.name, "duration_seconds": duration}
            )

            sleep_time = max(0.0, self.interval_seconds - duration)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=sleep_time)
            except asyncio.TimeoutError:
                pass
