from roomrental.models.user import User, UserRole
from roomrental.models.room import Room, RoomStatus, RoomType
from roomrental.models.booking import Booking, BookingStatus, ACTIVE_STATUSES
from roomrental.models.review import Review

__all__ = [
    "User", "UserRole",
    "Room", "RoomStatus", "RoomType",
    "Booking", "BookingStatus", "ACTIVE_STATUSES",
    "Review",
]
