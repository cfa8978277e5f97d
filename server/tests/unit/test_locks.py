"""Unit tests for per-resource locks."""

import asyncio

import pytest

from booking_engine.core.exceptions import ResourceBusyError
from booking_engine.engine.locks import KeyedLocks


@pytest.mark.asyncio
async def test_lock_times_out_with_resource_busy():
    """Test that waiting past the timeout raises a retryable busy error."""
    locks = KeyedLocks(timeout_seconds=0.05)

    async with locks.hold("car-1"):
        assert locks.is_locked("car-1")
        with pytest.raises(ResourceBusyError) as exc_info:
            async with locks.hold("car-1"):
                pass

    assert exc_info.value.status_code == 409
    assert exc_info.value.problem_details["retryable"] is True
    assert not locks.is_locked("car-1")


@pytest.mark.asyncio
async def test_different_keys_do_not_contend():
    """Test that holding one key does not block another."""
    locks = KeyedLocks(timeout_seconds=0.05)

    async with locks.hold("car-1"):
        async with locks.hold("car-2"):
            assert locks.is_locked("car-1")
            assert locks.is_locked("car-2")


@pytest.mark.asyncio
async def test_lock_released_on_error():
    """Test that an exception inside the block releases the lock."""
    locks = KeyedLocks(timeout_seconds=0.05)

    with pytest.raises(RuntimeError):
        async with locks.hold("car-1"):
            raise RuntimeError("boom")

    assert not locks.is_locked("car-1")


@pytest.mark.asyncio
async def test_waiters_are_serialized():
    """Test that holders of the same key never overlap."""
    locks = KeyedLocks(timeout_seconds=1.0)
    inside = 0
    max_inside = 0

    async def worker():
        nonlocal inside, max_inside
        async with locks.hold("tour-1"):
            inside += 1
            max_inside = max(max_inside, inside)
            await asyncio.sleep(0)
            inside -= 1

    await asyncio.gather(*(worker() for _ in range(10)))

    assert max_inside == 1


@pytest.mark.asyncio
async def test_idle_keys_are_dropped():
    """Test that a key's lock is discarded once nobody holds or waits for it."""
    locks = KeyedLocks(timeout_seconds=0.05)

    for key in ("car-1", "car-2", "tour-1"):
        async with locks.hold(key):
            assert len(locks) == 1
    assert len(locks) == 0

    async with locks.hold("car-1"):
        with pytest.raises(ResourceBusyError):
            async with locks.hold("car-1"):
                pass
        assert len(locks) == 1
        assert locks.is_locked("car-1")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_waiter_keeps_key_alive_after_holder_leaves():
    """Test that a queued waiter still serializes against a new holder."""
    locks = KeyedLocks(timeout_seconds=1.0)
    order = []

    async def holder(name):
        async with locks.hold("car-1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(holder("first"), holder("second"), holder("third"))

    assert order == ["first-in", "first-out", "second-in", "second-out", "third-in", "third-out"]
    assert len(locks) == 0
