"""
Review service.

A tenant may review a room once, and only after a COMPLETED stay in it.
The unique (user_id, room_id) constraint backs the duplicate check when two
submissions race.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.actor import Actor
from roomrental.core.errors import DuplicateViolation, ErrorKind, Result, StorageError
from roomrental.core.logging import get_logger
from roomrental.models import Review
from roomrental.schemas.review import ReviewCreate
from roomrental.services.interfaces.repositories import NewReview, UnitOfWork

logger = get_logger(__name__)

DUPLICATE_MESSAGE = "You have already reviewed this room"


async def create_review(uow: UnitOfWork, data: ReviewCreate, actor: Actor) -> Result[Review]:
    try:
        room = await uow.rooms.get_room(data.room_id)
        if room is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Room not found")

        if not await uow.bookings.has_completed_booking(actor.id, data.room_id):
            logger.warning("review_rejected", reason="no_completed_stay", room_id=data.room_id)
            return Result.failure(ErrorKind.REVIEW_NOT_ALLOWED, "You can only review rooms you have stayed in")

        if await uow.reviews.get_for_user_and_room(actor.id, data.room_id):
            logger.warning("review_rejected", reason="duplicate", room_id=data.room_id)
            return Result.failure(ErrorKind.DUPLICATE_REVIEW, DUPLICATE_MESSAGE)

        review = await uow.reviews.create_review(NewReview(
            user_id=actor.id,
            room_id=data.room_id,
            rating=data.rating,
            comment=data.comment,
        ))
        await uow.commit()
    except DuplicateViolation:
        await uow.rollback()
        return Result.failure(ErrorKind.DUPLICATE_REVIEW, DUPLICATE_MESSAGE)
    except StorageError as e:
        await uow.rollback()
        logger.error("review_storage_error", room_id=data.room_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to create review")

    logger.info("review_created", review_id=review.id, room_id=review.room_id, rating=review.rating)
    return Result.success(review)


async def delete_review(uow: UnitOfWork, review_id: int, actor: Actor) -> Result[Review]:
    review = await uow.reviews.get_review(review_id)
    if review is None:
        return Result.failure(ErrorKind.NOT_FOUND, "Review not found")
    if review.user_id != actor.id and not actor.is_admin:
        return Result.failure(ErrorKind.UNAUTHORIZED, "Unauthorized")

    try:
        await uow.reviews.delete_review(review)
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("review_storage_error", review_id=review_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to delete review")

    logger.info("review_deleted", review_id=review_id, room_id=review.room_id)
    return Result.success(review)


async def list_reviews(
    db: AsyncSession,
    room_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Review], int]:
    query = select(Review)
    if room_id is not None:
        query = query.where(Review.room_id == room_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(
        query.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def rating_summary(db: AsyncSession, room_id: int) -> tuple[Optional[float], int]:
    """Average rating and review count for a room."""
    result = await db.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.room_id == room_id)
    )
    average, count = result.one()
    return (round(float(average), 2) if average is not None else None), count
