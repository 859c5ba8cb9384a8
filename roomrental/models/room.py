"""
Room listing owned by a landlord.

Key design decisions:
- `price` is a per-day rate; bookings snapshot their own total
- `status` gates new bookings: only AVAILABLE rooms accept requests
- Composite index on (is_active, status, featured) backs the default search
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Boolean, ForeignKey, JSON, Enum, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from roomrental.db.base import Base, TimestampMixin


class RoomStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"


class RoomType(str, enum.Enum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    STUDIO = "STUDIO"
    APARTMENT = "APARTMENT"
    SHARED = "SHARED"


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(Enum(RoomType, name="room_type", native_enum=False, length=20), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    size = Column(Numeric(10, 2), nullable=False)
    location = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False, default="Nepal")
    amenities = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    max_guests = Column(Integer, nullable=False)
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Integer, nullable=False, default=1)
    featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    status = Column(
        Enum(RoomStatus, name="room_status", native_enum=False, length=20),
        nullable=False,
        default=RoomStatus.AVAILABLE,
    )
    landlord_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    landlord = relationship("User", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room", passive_deletes=True)
    reviews = relationship("Review", back_populates="room", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("price > 0", name="check_room_price_positive"),
        CheckConstraint("max_guests > 0", name="check_room_max_guests_positive"),
        Index("ix_rooms_search", "is_active", "status", "featured"),
        Index("ix_rooms_price", "price"),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, title={self.title}, status={self.status})>"
