"""
SQLAlchemy implementations of the repository interfaces.

Driver errors never leave this module raw: exclusion and uniqueness
violations become OverlapViolation / DuplicateViolation, anything else
becomes StorageError.
"""

import json
from contextlib import contextmanager
from dataclasses import asdict
from datetime import date
from typing import Iterable, Iterator, Optional

from sqlalchemy import String, cast, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.errors import DuplicateViolation, OverlapViolation, StorageError
from roomrental.models import Booking, BookingStatus, Review, Room
from roomrental.models.booking import OVERLAP_CONSTRAINT
from roomrental.models.review import REVIEW_UNIQUE_CONSTRAINT
from roomrental.services.interfaces.repositories import (
    BookingRepository, NewBooking, NewReview, ReviewRepository, RoomFilters, RoomRepository, UnitOfWork,
)


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        detail = str(e.orig)
        if OVERLAP_CONSTRAINT in detail:
            raise OverlapViolation(detail) from e
        # PostgreSQL names the constraint, SQLite names the columns
        if REVIEW_UNIQUE_CONSTRAINT in detail or "reviews.user_id, reviews.room_id" in detail:
            raise DuplicateViolation(detail) from e
        raise StorageError(detail) from e
    except SQLAlchemyError as e:
        raise StorageError(str(e)) from e


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyRoomRepository(RoomRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_room(self, room_id: int, lock: bool = False) -> Optional[Room]:
        query = select(Room).where(Room.id == room_id)
        if lock:
            # Serialises concurrent bookings of this room across workers (no-op on SQLite)
            query = query.with_for_update()
        with translate_errors():
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

    async def add_room(self, room: Room) -> Room:
        with translate_errors():
            self.session.add(room)
            await self.session.flush()
            await self.session.refresh(room)
        return room

    async def search(self, filters: RoomFilters, page: int, limit: int) -> tuple[list[Room], int]:
        query = select(Room).where(Room.is_active.is_(True))

        if filters.city:
            query = query.where(Room.city.ilike(f"%{filters.city}%"))
        if filters.type:
            query = query.where(Room.type == filters.type)
        if filters.status:
            query = query.where(Room.status == filters.status)
        if filters.landlord_id is not None:
            query = query.where(Room.landlord_id == filters.landlord_id)
        if filters.featured:
            query = query.where(Room.featured.is_(True))
        if filters.min_price is not None:
            query = query.where(Room.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.where(Room.price <= filters.max_price)
        if filters.min_guests is not None:
            query = query.where(Room.max_guests >= filters.min_guests)
        for amenity in filters.amenities:
            # amenities is a JSON array of strings; every requested one must be present
            token = _escape_like(json.dumps(amenity, ensure_ascii=False))
            query = query.where(cast(Room.amenities, String).like(f"%{token}%", escape="\\"))

        with translate_errors():
            count_query = select(func.count()).select_from(query.subquery())
            total = (await self.session.execute(count_query)).scalar()

            result = await self.session.execute(
                query
                .order_by(Room.featured.desc(), Room.created_at.desc(), Room.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            return list(result.scalars().all()), total

    async def delete_room(self, room_id: int) -> None:
        with translate_errors():
            await self.session.execute(delete(Review).where(Review.room_id == room_id))
            await self.session.execute(delete(Booking).where(Booking.room_id == room_id))
            await self.session.execute(delete(Room).where(Room.id == room_id))


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        with translate_errors():
            result = await self.session.execute(select(Booking).where(Booking.id == booking_id))
            return result.scalar_one_or_none()

    async def find_overlapping(
        self,
        room_id: int,
        check_in: date,
        check_out: date,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        query = select(Booking).where(
            Booking.room_id == room_id,
            Booking.status.in_(list(statuses)),
            Booking.check_in <= check_out,
            Booking.check_out >= check_in,
        )
        with translate_errors():
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def create_booking(self, fields: NewBooking) -> Booking:
        booking = Booking(**asdict(fields))
        with translate_errors():
            self.session.add(booking)
            await self.session.flush()
            await self.session.refresh(booking)
        return booking

    async def update_status(self, booking: Booking, expected: BookingStatus, new: BookingStatus) -> bool:
        with translate_errors():
            result = await self.session.execute(
                update(Booking)
                .where(Booking.id == booking.id, Booking.status == expected)
                .values(status=new)
            )
            if result.rowcount == 0:
                return False
            await self.session.refresh(booking)
        return True

    async def delete_booking(self, booking: Booking) -> None:
        with translate_errors():
            await self.session.execute(delete(Booking).where(Booking.id == booking.id))

    async def has_completed_booking(self, user_id: int, room_id: int) -> bool:
        query = select(Booking.id).where(
            Booking.user_id == user_id,
            Booking.room_id == room_id,
            Booking.status == BookingStatus.COMPLETED,
        ).limit(1)
        with translate_errors():
            result = await self.session.execute(query)
            return result.scalar_one_or_none() is not None


class SqlAlchemyReviewRepository(ReviewRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_review(self, review_id: int) -> Optional[Review]:
        with translate_errors():
            result = await self.session.execute(select(Review).where(Review.id == review_id))
            return result.scalar_one_or_none()

    async def get_for_user_and_room(self, user_id: int, room_id: int) -> Optional[Review]:
        with translate_errors():
            result = await self.session.execute(
                select(Review).where(Review.user_id == user_id, Review.room_id == room_id)
            )
            return result.scalar_one_or_none()

    async def create_review(self, fields: NewReview) -> Review:
        review = Review(**asdict(fields))
        with translate_errors():
            self.session.add(review)
            await self.session.flush()
            await self.session.refresh(review)
        return review

    async def delete_review(self, review: Review) -> None:
        with translate_errors():
            await self.session.execute(delete(Review).where(Review.id == review.id))


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session
        self.rooms = SqlAlchemyRoomRepository(session)
        self.bookings = SqlAlchemyBookingRepository(session)
        self.reviews = SqlAlchemyReviewRepository(session)

    async def commit(self) -> None:
        with translate_errors():
            await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
