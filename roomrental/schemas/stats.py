"""
Dashboard statistics schemas.
"""

from pydantic import BaseModel

from roomrental.schemas.booking import BookingResponse


class MonthlyRevenue(BaseModel):
    month: str
    revenue: float


class TenantStats(BaseModel):
    total_bookings: int
    active_bookings: int
    completed_bookings: int
    total_spent: float
    recent_bookings: list[BookingResponse]


class LandlordStats(BaseModel):
    total_rooms: int
    active_rooms: int
    total_bookings: int
    pending_bookings: int
    total_revenue: float
    recent_bookings: list[BookingResponse]
    monthly_revenue: list[MonthlyRevenue]


class TopRoom(BaseModel):
    id: int
    title: str
    bookings: int


class AdminStats(BaseModel):
    total_users: int
    total_rooms: int
    total_bookings: int
    total_revenue: float
    users_by_role: dict[str, int]
    rooms_by_status: dict[str, int]
    bookings_by_status: dict[str, int]
    recent_bookings: list[BookingResponse]
    monthly_revenue: list[MonthlyRevenue]
    top_rooms: list[TopRoom]
