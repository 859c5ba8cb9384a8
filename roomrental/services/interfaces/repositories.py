"""
Persistence capabilities used by the booking, review and listing services.

The services depend only on these interfaces, so the same admission logic
runs against PostgreSQL through SQLAlchemy and against the in-memory store
used by the unit tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from roomrental.models import Booking, BookingStatus, Review, Room


@dataclass
class NewBooking:
    user_id: int
    room_id: int
    check_in: date
    check_out: date
    guests: int
    total_price: Decimal
    notes: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING


@dataclass
class NewReview:
    user_id: int
    room_id: int
    rating: int
    comment: str


@dataclass
class RoomFilters:
    city: Optional[str] = None
    type: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_guests: Optional[int] = None
    amenities: list[str] = field(default_factory=list)
    featured: Optional[bool] = None
    status: Optional[str] = None
    landlord_id: Optional[int] = None


class RoomRepository(ABC):
    @abstractmethod
    async def get_room(self, room_id: int, lock: bool = False) -> Optional[Room]:
        """
        Fetch a room by id.

        Args:
            room_id: Room to load
            lock: Hold a row lock on the room until the unit of work ends
        """

    @abstractmethod
    async def add_room(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def search(self, filters: RoomFilters, page: int, limit: int) -> tuple[list[Room], int]:
        """Active rooms matching the filters, featured first, newest first."""

    @abstractmethod
    async def delete_room(self, room_id: int) -> None:
        """Delete a room together with its bookings and reviews."""


class BookingRepository(ABC):
    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        """
        Bookings of the room in one of `statuses` whose dates touch the
        requested range: existing.check_in <= check_out and
        existing.check_out >= check_in (both bounds inclusive).
        """

    @abstractmethod
    async def create_booking(self, fields: NewBooking) -> Booking:
        pass

    @abstractmethod
    async def update_status(
        self,
        booking: Booking,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> bool:
        """
        Move the booking to `new` only if it is still in `expected`.

        Returns:
            True if the row changed, False if another request moved it first
        """

    @abstractmethod
    async def delete_booking(self, booking: Booking) -> None:
        pass

    @abstractmethod
    async def has_completed_booking(self, user_id: int, room_id: int) -> bool:
        pass


class ReviewRepository(ABC):
    @abstractmethod
    async def get_review(self, review_id: int) -> Optional[Review]:
        pass

    @abstractmethod
    async def get_for_user_and_room(self, user_id: int, room_id: int) -> Optional[Review]:
        pass

    @abstractmethod
    async def create_review(self, fields: NewReview) -> Review:
        pass

    @abstractmethod
    async def delete_review(self, review: Review) -> None:
        pass


class UnitOfWork(ABC):
    """
    Groups repository calls into one transaction.

    Writes are only visible to other units of work after commit().
    """

    rooms: RoomRepository
    bookings: BookingRepository
    reviews: ReviewRepository

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
