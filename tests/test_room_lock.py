"""
Tests for the per-room locks.
"""

import asyncio

import pytest

from roomrental.core.errors import RoomLockTimeout
from roomrental.services.interfaces.local_room_lock import LocalRoomLock
from roomrental.services.lock_factory import build_room_lock
from roomrental.services.room_lock_service import RedisRoomLock


@pytest.mark.asyncio
async def test_same_room_is_serialised():
    """A second holder of the same room waits for the first."""
    lock = LocalRoomLock(blocking_timeout=1)
    events = []

    async def worker(name: str):
        async with lock.hold(1):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events == ["a-in", "a-out", "b-in", "b-out"]


@pytest.mark.asyncio
async def test_different_rooms_run_in_parallel():
    lock = LocalRoomLock(blocking_timeout=1)
    events = []

    async def worker(room_id: int):
        async with lock.hold(room_id):
            events.append(f"{room_id}-in")
            await asyncio.sleep(0.01)
            events.append(f"{room_id}-out")

    await asyncio.gather(worker(1), worker(2))
    assert events[:2] == ["1-in", "2-in"]


@pytest.mark.asyncio
async def test_waiting_too_long_times_out():
    lock = LocalRoomLock(blocking_timeout=0.01)

    async with lock.hold(7):
        with pytest.raises(RoomLockTimeout):
            async with lock.hold(7):
                pass


@pytest.mark.asyncio
async def test_lock_is_released_on_error():
    lock = LocalRoomLock(blocking_timeout=0.1)

    with pytest.raises(ValueError):
        async with lock.hold(3):
            raise ValueError("boom")

    async with lock.hold(3):
        pass


@pytest.mark.asyncio
async def test_redis_lock_falls_back_without_redis():
    """With Redis disabled the distributed lock behaves like the local one."""
    lock = RedisRoomLock(timeout=1, blocking_timeout=0.01)

    async with lock.hold(5):
        with pytest.raises(RoomLockTimeout):
            async with lock.hold(5):
                pass


def test_factory_builds_local_lock_by_default():
    assert isinstance(build_room_lock(), LocalRoomLock)
