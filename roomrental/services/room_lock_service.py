"""
Redis-backed room lock for deployments with several worker processes.
Implements the RoomLock interface using redis.asyncio locks.

Fallback:
  If Redis is disabled or unreachable the lock degrades to the in-process
  LocalRoomLock. Correctness across workers then rests on the row lock
  taken on the room (SELECT ... FOR UPDATE) and, on PostgreSQL, on the
  exclusion constraint over active booking date ranges.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis.exceptions import LockError, RedisError

from roomrental.core.errors import RoomLockTimeout
from roomrental.core.logging import get_logger
from roomrental.core.metrics import redis_connection_errors, redis_lock_fallback, room_lock_timeouts, room_lock_wait
from roomrental.infrastructure.redis_client import get_redis
from roomrental.services.interfaces.local_room_lock import LocalRoomLock
from roomrental.services.interfaces.room_lock import RoomLock

logger = get_logger(__name__)


class RedisRoomLock(RoomLock):
    """
    Distributed per-room lock.

    Use when:
    - Booking requests are served by more than one process or host
    """

    backend = "redis"

    def __init__(self, timeout: float, blocking_timeout: Optional[float], fallback: Optional[LocalRoomLock] = None):
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.fallback = fallback or LocalRoomLock(blocking_timeout=blocking_timeout)

    @staticmethod
    def _key(room_id: int) -> str:
        return f"lock:room:{room_id}"

    @asynccontextmanager
    async def hold(self, room_id: int) -> AsyncIterator[None]:
        client = await get_redis()
        if client is None:
            redis_lock_fallback.set(1)
            async with self.fallback.hold(room_id):
                yield
            return

        lock = client.lock(
            self._key(room_id),
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
        started = time.perf_counter()
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            redis_connection_errors.inc()
            redis_lock_fallback.set(1)
            logger.warning("room_lock_redis_unavailable", room_id=room_id, error=str(e))
            async with self.fallback.hold(room_id):
                yield
            return

        if not acquired:
            room_lock_timeouts.inc()
            raise RoomLockTimeout(f"Timed out waiting for room {room_id}")

        redis_lock_fallback.set(0)
        room_lock_wait.labels(backend=self.backend).observe(time.perf_counter() - started)
        try:
            yield
        finally:
            try:
                await lock.release()
            except (LockError, RedisError) as e:
                # The lock expired or Redis went away; the transaction already finished
                logger.warning("room_lock_release_failed", room_id=room_id, error=str(e))
