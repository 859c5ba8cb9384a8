from roomrental.schemas.user import UserCreate, UserResponse, UserLogin, UserUpdate, UserListResponse, Token
from roomrental.schemas.room import RoomCreate, RoomUpdate, RoomResponse, RoomDetailResponse, RoomListResponse
from roomrental.schemas.booking import (
    BookingCreate, BookingResponse, BookingEnvelope, BookingStatusUpdate, BookingListResponse,
)
from roomrental.schemas.review import ReviewCreate, ReviewResponse, ReviewListResponse
from roomrental.schemas.stats import TenantStats, LandlordStats, AdminStats

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "UserUpdate", "UserListResponse", "Token",
    "RoomCreate", "RoomUpdate", "RoomResponse", "RoomDetailResponse", "RoomListResponse",
    "BookingCreate", "BookingResponse", "BookingEnvelope", "BookingStatusUpdate", "BookingListResponse",
    "ReviewCreate", "ReviewResponse", "ReviewListResponse",
    "TenantStats", "LandlordStats", "AdminStats",
]
