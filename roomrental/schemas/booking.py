"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from roomrental.models.booking import BookingStatus


class BookingCreate(BaseModel):
    room_id: int
    check_in: date
    check_out: date
    guests: int = Field(default=1, gt=0)
    notes: Optional[str] = Field(None, max_length=1000)


class BookingResponse(BaseModel):
    id: int
    user_id: int
    room_id: int
    check_in: date
    check_out: date
    guests: int
    total_price: float
    notes: Optional[str]
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingEnvelope(BaseModel):
    booking: BookingResponse


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int
    page: int
    limit: int
    total_pages: int
