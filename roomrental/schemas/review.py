"""
Pydantic schemas for reviews.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    room_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10, max_length=2000)


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    room_id: int
    rating: int
    comment: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReviewListResponse(BaseModel):
    reviews: list[ReviewResponse]
    total: int
    page: int
    limit: int
    total_pages: int
