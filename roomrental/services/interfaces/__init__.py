"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .repositories import (
    BookingRepository, NewBooking, NewReview, ReviewRepository, RoomFilters, RoomRepository, UnitOfWork,
)
from .room_lock import RoomLock
from .local_room_lock import LocalRoomLock

__all__ = [
    'BookingRepository', 'NewBooking', 'NewReview', 'ReviewRepository',
    'RoomFilters', 'RoomRepository', 'UnitOfWork',
    'RoomLock', 'LocalRoomLock',
]
