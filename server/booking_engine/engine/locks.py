"""Per-key asyncio locks with a bounded wait."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ..core.exceptions import ResourceBusyError


class KeyedLocks:
    """
    One ``asyncio.Lock`` per key, created on first use.

    Operations on different keys never contend. Acquisition waits at most
    ``timeout_seconds`` and then fails with :class:`ResourceBusyError`.
    A key's lock is dropped once no task holds or waits for it.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                raise ResourceBusyError(key, self.timeout_seconds) from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
