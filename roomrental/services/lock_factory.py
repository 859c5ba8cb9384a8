"""
Room lock factory.
Configures which room locking strategy booking creation uses.
"""

from typing import Optional

from roomrental.core.config import get_settings
from roomrental.services.interfaces.local_room_lock import LocalRoomLock
from roomrental.services.interfaces.room_lock import RoomLock
from roomrental.services.room_lock_service import RedisRoomLock


def build_room_lock() -> RoomLock:
    """
    Build the configured room lock.

    ROOM_LOCK_BACKEND:
    - local: LocalRoomLock (single process)
    - redis: RedisRoomLock (several workers, falls back to local)
    """
    settings = get_settings()

    if settings.ROOM_LOCK_BACKEND == "redis":
        return RedisRoomLock(
            timeout=settings.ROOM_LOCK_TIMEOUT,
            blocking_timeout=settings.ROOM_LOCK_BLOCKING_TIMEOUT,
        )
    return LocalRoomLock(blocking_timeout=settings.ROOM_LOCK_BLOCKING_TIMEOUT)


# Singleton instance
_room_lock: Optional[RoomLock] = None


def get_room_lock() -> RoomLock:
    """Get room lock singleton."""
    global _room_lock
    if _room_lock is None:
        _room_lock = build_room_lock()
    return _room_lock
