"""
Pydantic schemas for room listings and search.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from roomrental.models.room import RoomStatus, RoomType


class RoomCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=255)
    description: str = Field(..., min_length=20)
    type: RoomType
    price: Decimal = Field(..., gt=0)
    size: Decimal = Field(..., gt=0)
    location: str = Field(..., min_length=3, max_length=255)
    address: str = Field(..., min_length=5, max_length=255)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    zip_code: str = Field(..., min_length=5, max_length=20)
    country: str = "Nepal"
    amenities: list[str] = []
    images: list[str] = []
    max_guests: int = Field(..., gt=0)
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(1, gt=0)
    featured: bool = False


class RoomUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=20)
    type: Optional[RoomType] = None
    price: Optional[Decimal] = Field(None, gt=0)
    size: Optional[Decimal] = Field(None, gt=0)
    location: Optional[str] = Field(None, min_length=3, max_length=255)
    address: Optional[str] = Field(None, min_length=5, max_length=255)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    state: Optional[str] = Field(None, min_length=2, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=5, max_length=20)
    country: Optional[str] = None
    amenities: Optional[list[str]] = None
    images: Optional[list[str]] = None
    max_guests: Optional[int] = Field(None, gt=0)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, gt=0)
    featured: Optional[bool] = None
    is_active: Optional[bool] = None
    status: Optional[RoomStatus] = None

    @model_validator(mode="after")
    def no_explicit_nulls(self) -> "RoomUpdate":
        # Every listing column is NOT NULL; omit a field to leave it unchanged
        cleared = sorted(name for name in self.model_fields_set if getattr(self, name) is None)
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class RoomResponse(BaseModel):
    id: int
    title: str
    description: str
    type: RoomType
    price: float
    size: float
    location: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    amenities: list[str]
    images: list[str]
    max_guests: int
    bedrooms: int
    bathrooms: int
    featured: bool
    is_active: bool
    status: RoomStatus
    landlord_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class RoomDetailResponse(RoomResponse):
    average_rating: Optional[float] = None
    review_count: int = 0


class RoomListResponse(BaseModel):
    rooms: list[RoomResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    cached: bool = False
