"""
In-process room lock built on asyncio.Lock.
"""

import asyncio
import time
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from roomrental.core.errors import RoomLockTimeout
from roomrental.core.metrics import room_lock_wait, room_lock_timeouts
from roomrental.services.interfaces.room_lock import RoomLock


class LocalRoomLock(RoomLock):
    """
    One asyncio.Lock per room id.

    Locks live in a WeakValueDictionary, so a room's lock disappears once no
    request holds or waits on it.

    Use when:
    - A single worker process serves booking requests
    - Tests and local development
    """

    backend = "local"

    def __init__(self, blocking_timeout: Optional[float] = None):
        self.blocking_timeout = blocking_timeout
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, room_id: int) -> asyncio.Lock:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[room_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, room_id: int) -> AsyncIterator[None]:
        lock = self._lock_for(room_id)
        started = time.perf_counter()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.blocking_timeout)
        except asyncio.TimeoutError:
            room_lock_timeouts.inc()
            raise RoomLockTimeout(f"Timed out waiting for room {room_id}")
        room_lock_wait.labels(backend=self.backend).observe(time.perf_counter() - started)
        try:
            yield
        finally:
            lock.release()
