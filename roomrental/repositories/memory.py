"""
In-memory repositories for tests and single-process experiments.

Rooms, bookings and reviews are ordinary model instances held in dicts.
Writes made through a unit of work are staged and only become visible to
other units of work on commit(), which reproduces the read-then-write race
that booking creation has to guard against. With `enforce_overlap=True` the
store also rejects overlapping active bookings at commit time, the way the
PostgreSQL exclusion constraint does.
"""

import itertools
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from roomrental.core.errors import DuplicateViolation, OverlapViolation, StorageError
from roomrental.models import Booking, BookingStatus, Review, Room
from roomrental.services.interfaces.repositories import (
    BookingRepository, NewBooking, NewReview, ReviewRepository, RoomFilters, RoomRepository, UnitOfWork,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _overlaps(booking: Booking, check_in: date, check_out: date) -> bool:
    return booking.check_in <= check_out and booking.check_out >= check_in


@dataclass
class InMemoryStore:
    enforce_overlap: bool = False
    rooms: dict[int, Room] = field(default_factory=dict)
    bookings: dict[int, Booking] = field(default_factory=dict)
    reviews: dict[int, Review] = field(default_factory=dict)
    _ids: Iterable[int] = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self._ids)

    def add_room(self, **fields) -> Room:
        """Insert a committed room directly (test setup)."""
        fields.setdefault("is_active", True)
        fields.setdefault("featured", False)
        fields.setdefault("amenities", [])
        fields.setdefault("images", [])
        room = Room(id=self.next_id(), created_at=_now(), updated_at=_now(), **fields)
        self.rooms[room.id] = room
        return room

    def add_booking(self, **fields) -> Booking:
        """Insert a committed booking directly (test setup)."""
        fields.setdefault("guests", 1)
        fields.setdefault("notes", None)
        booking = Booking(id=self.next_id(), created_at=_now(), updated_at=_now(), **fields)
        self.bookings[booking.id] = booking
        return booking


class InMemoryRoomRepository(RoomRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self.uow = uow
        self.store = uow.store

    async def get_room(self, room_id: int, lock: bool = False) -> Optional[Room]:
        return self.store.rooms.get(room_id)

    async def add_room(self, room: Room) -> Room:
        room.id = self.store.next_id()
        room.created_at = room.updated_at = _now()
        self.uow.stage(lambda: self.store.rooms.__setitem__(room.id, room))
        return room

    async def search(self, filters: RoomFilters, page: int, limit: int) -> tuple[list[Room], int]:
        def matches(room: Room) -> bool:
            return all((
                room.is_active,
                not filters.city or filters.city.lower() in room.city.lower(),
                not filters.type or room.type == filters.type,
                not filters.status or room.status == filters.status,
                filters.landlord_id is None or room.landlord_id == filters.landlord_id,
                not filters.featured or room.featured,
                filters.min_price is None or room.price >= filters.min_price,
                filters.max_price is None or room.price <= filters.max_price,
                filters.min_guests is None or room.max_guests >= filters.min_guests,
                all(a in room.amenities for a in filters.amenities),
            ))

        rooms = sorted(
            (r for r in self.store.rooms.values() if matches(r)),
            key=lambda r: (r.featured, r.created_at, r.id),
            reverse=True,
        )
        start = (page - 1) * limit
        return rooms[start:start + limit], len(rooms)

    async def delete_room(self, room_id: int) -> None:
        def apply():
            self.store.rooms.pop(room_id, None)
            for table in (self.store.bookings, self.store.reviews):
                for key in [k for k, v in table.items() if v.room_id == room_id]:
                    del table[key]

        self.uow.stage(apply)


class InMemoryBookingRepository(BookingRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self.uow = uow
        self.store = uow.store

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.store.bookings.get(booking_id)

    async def find_overlapping(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        wanted = set(statuses)
        visible = list(self.store.bookings.values()) + self.uow.pending_bookings
        return [
            b for b in visible
            if b.room_id == room_id and b.status in wanted and _overlaps(b, check_in, check_out)
        ]

    async def create_booking(self, fields: NewBooking) -> Booking:
        booking = Booking(id=self.store.next_id(), created_at=_now(), updated_at=_now(), **asdict(fields))
        self.uow.pending_bookings.append(booking)

        def check():
            if self.store.enforce_overlap and booking.is_active:
                for other in self.store.bookings.values():
                    if (
                        other.room_id == booking.room_id
                        and other.is_active
                        and _overlaps(other, booking.check_in, booking.check_out)
                    ):
                        raise OverlapViolation(f"booking {booking.id} overlaps booking {other.id}")

        self.uow.stage(lambda: self.store.bookings.__setitem__(booking.id, booking), check)
        return booking

    async def update_status(self, booking: Booking, expected: BookingStatus, new: BookingStatus) -> bool:
        if booking.status != expected:
            return False

        def check():
            if booking.status != expected:
                raise StorageError(f"booking {booking.id} changed concurrently")

        def apply():
            booking.status = new
            booking.updated_at = _now()

        self.uow.stage(apply, check)
        return True

    async def delete_booking(self, booking: Booking) -> None:
        self.uow.stage(lambda: self.store.bookings.pop(booking.id, None))

    async def has_completed_booking(self, user_id: int, room_id: int) -> bool:
        return any(
            b.user_id == user_id and b.room_id == room_id and b.status == BookingStatus.COMPLETED
            for b in self.store.bookings.values()
        )


class InMemoryReviewRepository(ReviewRepository):
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self.uow = uow
        self.store = uow.store

    async def get_review(self, review_id: int) -> Optional[Review]:
        return self.store.reviews.get(review_id)

    async def get_for_user_and_room(self, user_id: int, room_id: int) -> Optional[Review]:
        for review in self.store.reviews.values():
            if review.user_id == user_id and review.room_id == room_id:
                return review
        return None

    async def create_review(self, fields: NewReview) -> Review:
        review = Review(id=self.store.next_id(), created_at=_now(), updated_at=_now(), **asdict(fields))

        def check():
            if any(
                r.user_id == review.user_id and r.room_id == review.room_id
                for r in self.store.reviews.values()
            ):
                raise DuplicateViolation(f"user {review.user_id} already reviewed room {review.room_id}")

        self.uow.stage(lambda: self.store.reviews.__setitem__(review.id, review), check)
        return review

    async def delete_review(self, review: Review) -> None:
        self.uow.stage(lambda: self.store.reviews.pop(review.id, None))


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore):
        self.store = store
        self.pending_bookings: list[Booking] = []
        self._staged: list[tuple[Optional[Callable[[], None]], Callable[[], None]]] = []
        self.rooms = InMemoryRoomRepository(self)
        self.bookings = InMemoryBookingRepository(self)
        self.reviews = InMemoryReviewRepository(self)

    def stage(self, apply: Callable[[], None], check: Optional[Callable[[], None]] = None) -> None:
        """Queue a write. `check` raises a StorageError if the write would violate a constraint."""
        self._staged.append((check, apply))

    async def commit(self) -> None:
        """All staged checks run before any write, so a failed commit changes nothing."""
        staged, self._staged = self._staged, []
        self.pending_bookings = []
        for check, _ in staged:
            if check is not None:
                check()
        for _, apply in staged:
            apply()

    async def rollback(self) -> None:
        self._staged = []
        self.pending_bookings = []
