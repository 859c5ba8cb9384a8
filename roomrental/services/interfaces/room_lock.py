"""
Per-room lock interface.
Serialises the check-then-insert sequence of booking creation for one room.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class RoomLock(ABC):
    """
    Interface for room locking strategies.

    Implementations:
    - LocalRoomLock: asyncio locks, correct within a single process
    - RedisRoomLock: Redis lock shared by every worker, falls back to local
    """

    backend: str = "abstract"

    @abstractmethod
    def hold(self, room_id: int) -> AsyncContextManager[None]:
        """
        Hold the lock for `room_id` for the duration of the `async with` block.

        Raises:
            RoomLockTimeout: if the lock could not be acquired in time
        """
