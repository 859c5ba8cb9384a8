"""
Booking model representing a tenant's request to rent a room for a date range.

Key design decisions:
- Status field keeps cancelled and completed bookings for history and reviews
- total_price is written once at creation and never recomputed
- Composite index on (room_id, check_in, check_out) serves the overlap query
- On PostgreSQL the migration adds an exclusion constraint so two active
  bookings of one room can never overlap, whatever the application does
"""

import enum

from sqlalchemy import Column, Integer, Date, Text, Numeric, ForeignKey, Enum, Index, CheckConstraint
from sqlalchemy.orm import relationship

from roomrental.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that still occupy the room's calendar
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

OVERLAP_CONSTRAINT = "ex_bookings_room_active_overlap"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    total_price = Column(Numeric(14, 2), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(
        Enum(BookingStatus, name="booking_status", native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
    )

    # Relationships
    user = relationship("User", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("guests > 0", name="check_booking_guests_positive"),
        CheckConstraint("check_out > check_in", name="check_booking_dates_ordered"),
        Index("ix_bookings_room_dates", "room_id", "check_in", "check_out"),
        Index("ix_bookings_status", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, room={self.room_id}, status={self.status})>"
