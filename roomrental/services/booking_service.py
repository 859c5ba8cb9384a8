"""
Booking admission, pricing and status transitions.

CONCURRENCY STRATEGY: Per-room serialisation
============================================

Problem:
  Two tenants request overlapping dates for the same room at the same time.
  Both run the overlap query, both see a free calendar, both insert.
  Result: Double booking.

Solution:
  The whole check-then-insert sequence for a room runs while holding that
  room's lock, and the lock is released only after the transaction commits.

  1. Acquire the room lock (asyncio lock, or Redis lock across workers)
  2. SELECT the room FOR UPDATE (serialises workers on the database too)
  3. Validate status, guest count, dates, then query overlapping active bookings
  4. INSERT the booking and COMMIT
  5. Release the lock

  On PostgreSQL an exclusion constraint over active date ranges is the final
  safety net; a violation is reported as DATE_CONFLICT like any other clash.

Admission checks run in a fixed order and the first failure wins:
  NOT_FOUND -> ROOM_UNAVAILABLE -> GUEST_LIMIT_EXCEEDED -> INVALID_DATE_RANGE -> DATE_CONFLICT

Overlap is tested with inclusive bounds, so a stay ending on day D
conflicts with one starting on day D.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.actor import Actor
from roomrental.core.errors import ErrorKind, OverlapViolation, Result, RoomLockTimeout, StorageError
from roomrental.core.logging import get_logger
from roomrental.core.metrics import booking_latency, record_booking_attempt, record_transition
from roomrental.models import ACTIVE_STATUSES, Booking, BookingStatus, Room, RoomStatus
from roomrental.schemas.booking import BookingCreate
from roomrental.services.interfaces.repositories import NewBooking, UnitOfWork
from roomrental.services.interfaces.room_lock import RoomLock
from roomrental.services.pricing import calculate_total_price

logger = get_logger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}

# Targets only the room's landlord or an admin may set
MANAGER_ONLY = {BookingStatus.CONFIRMED, BookingStatus.COMPLETED}


async def _reject(uow: UnitOfWork, kind: ErrorKind, message: str, **context) -> Result[Booking]:
    # Ends the transaction so the room row lock is not held past the decision
    await uow.rollback()
    logger.warning("booking_rejected", reason=kind.value, **context)
    return Result.failure(kind, message)


async def _admit(uow: UnitOfWork, request: BookingCreate, actor: Actor) -> Result[Booking]:
    room_id = request.room_id
    try:
        room = await uow.rooms.get_room(room_id, lock=True)
        if room is None:
            return await _reject(uow, ErrorKind.NOT_FOUND, "Room not found", room_id=room_id)

        if room.status != RoomStatus.AVAILABLE:
            return await _reject(
                uow, ErrorKind.ROOM_UNAVAILABLE, "Room is not available",
                room_id=room_id, room_status=room.status.value,
            )

        if request.guests > room.max_guests:
            return await _reject(
                uow, ErrorKind.GUEST_LIMIT_EXCEEDED, f"Maximum guests allowed: {room.max_guests}",
                room_id=room_id, requested=request.guests, limit=room.max_guests,
            )

        if request.check_in >= request.check_out:
            return await _reject(
                uow, ErrorKind.INVALID_DATE_RANGE, "Check-out must be after check-in",
                room_id=room_id, check_in=str(request.check_in), check_out=str(request.check_out),
            )

        conflicts = await uow.bookings.find_overlapping(
            room_id, request.check_in, request.check_out, ACTIVE_STATUSES,
        )
        if conflicts:
            return await _reject(
                uow, ErrorKind.DATE_CONFLICT, "Room is already booked for these dates",
                room_id=room_id, conflicting_booking_id=conflicts[0].id,
            )

        booking = await uow.bookings.create_booking(NewBooking(
            user_id=actor.id,
            room_id=room_id,
            check_in=request.check_in,
            check_out=request.check_out,
            guests=request.guests,
            total_price=calculate_total_price(room.price, request.check_in, request.check_out),
            notes=request.notes,
        ))
        await uow.commit()
    except OverlapViolation:
        return await _reject(
            uow, ErrorKind.DATE_CONFLICT, "Room is already booked for these dates",
            room_id=room_id, detected_by="storage_constraint",
        )
    except StorageError as e:
        await uow.rollback()
        logger.error("booking_storage_error", room_id=room_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to create booking")

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=actor.id,
        room_id=room_id,
        check_in=str(booking.check_in),
        check_out=str(booking.check_out),
        total_price=str(booking.total_price),
    )
    return Result.success(booking)


async def create_booking(
    uow: UnitOfWork,
    request: BookingCreate,
    actor: Actor,
    room_lock: RoomLock,
) -> Result[Booking]:
    """
    Admit a booking request and price it.

    Returns a PENDING booking with total_price set, or the first failed
    admission check. Never raises for expected rejections.
    """
    with booking_latency.time():
        try:
            async with room_lock.hold(request.room_id):
                result = await _admit(uow, request, actor)
        except RoomLockTimeout:
            logger.warning("booking_lock_timeout", room_id=request.room_id)
            result = Result.failure(ErrorKind.STORAGE_ERROR, "Room is busy, please try again")

    record_booking_attempt("created" if result.ok else result.error.kind.value.lower())
    return result


def _relation(actor: Actor, booking: Booking, room: Optional[Room]) -> tuple[bool, bool]:
    is_tenant = booking.user_id == actor.id
    is_landlord = room is not None and room.landlord_id == actor.id
    return is_tenant, is_landlord


async def get_booking(uow: UnitOfWork, booking_id: int, actor: Actor) -> Result[Booking]:
    """Fetch a booking visible to its tenant, the room's landlord, or an admin."""
    booking = await uow.bookings.get_booking(booking_id)
    if booking is None:
        return Result.failure(ErrorKind.NOT_FOUND, "Booking not found")

    room = await uow.rooms.get_room(booking.room_id)
    is_tenant, is_landlord = _relation(actor, booking, room)
    if not (is_tenant or is_landlord or actor.is_admin):
        return Result.failure(ErrorKind.UNAUTHORIZED, "Access denied")
    return Result.success(booking)


async def transition(
    uow: UnitOfWork,
    booking_id: int,
    new_status: BookingStatus,
    actor: Actor,
) -> Result[Booking]:
    """
    Move a booking along PENDING -> CONFIRMED -> COMPLETED, or to CANCELLED.

    Tenants may only cancel their own bookings. The room's landlord and
    admins may confirm, complete or cancel. CANCELLED and COMPLETED are final.
    """
    result = await _transition(uow, booking_id, new_status, actor)
    record_transition(new_status.value.lower(), result.ok)
    if not result.ok:
        logger.warning(
            "booking_transition_rejected",
            booking_id=booking_id,
            target=new_status.value,
            reason=result.error.kind.value,
        )
    return result


async def _transition(
    uow: UnitOfWork,
    booking_id: int,
    new_status: BookingStatus,
    actor: Actor,
) -> Result[Booking]:
    try:
        booking = await uow.bookings.get_booking(booking_id)
        if booking is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Booking not found")

        room = await uow.rooms.get_room(booking.room_id)
        is_tenant, is_landlord = _relation(actor, booking, room)
        if not (is_tenant or is_landlord or actor.is_admin):
            return Result.failure(ErrorKind.UNAUTHORIZED, "Unauthorized")

        current = booking.status
        if not ALLOWED_TRANSITIONS[current]:
            return Result.failure(
                ErrorKind.INVALID_TRANSITION, f"Booking is already {current.value.lower()}",
            )
        if new_status not in ALLOWED_TRANSITIONS[current]:
            return Result.failure(
                ErrorKind.INVALID_TRANSITION,
                f"Cannot change booking from {current.value} to {new_status.value}",
            )
        if new_status in MANAGER_ONLY and not (is_landlord or actor.is_admin):
            return Result.failure(ErrorKind.UNAUTHORIZED, "You can only cancel your booking")

        applied = await uow.bookings.update_status(booking, current, new_status)
        if not applied:
            await uow.rollback()
            return Result.failure(ErrorKind.INVALID_TRANSITION, "Booking status changed, please reload")
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("booking_storage_error", booking_id=booking_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to update booking")

    logger.info(
        "booking_status_changed",
        booking_id=booking.id,
        from_status=current.value,
        to_status=new_status.value,
        actor_id=actor.id,
    )
    return Result.success(booking)


async def confirm_booking(uow: UnitOfWork, booking_id: int, actor: Actor) -> Result[Booking]:
    return await transition(uow, booking_id, BookingStatus.CONFIRMED, actor)


async def cancel_booking(uow: UnitOfWork, booking_id: int, actor: Actor) -> Result[Booking]:
    return await transition(uow, booking_id, BookingStatus.CANCELLED, actor)


async def complete_booking(uow: UnitOfWork, booking_id: int, actor: Actor) -> Result[Booking]:
    return await transition(uow, booking_id, BookingStatus.COMPLETED, actor)


async def delete_booking(uow: UnitOfWork, booking_id: int, actor: Actor) -> Result[Booking]:
    """Remove a booking outright. Admin only; tenants and landlords cancel instead."""
    if not actor.is_admin:
        return Result.failure(ErrorKind.FORBIDDEN_ROLE, "Only admins can delete bookings")

    try:
        booking = await uow.bookings.get_booking(booking_id)
        if booking is None:
            return Result.failure(ErrorKind.NOT_FOUND, "Booking not found")
        await uow.bookings.delete_booking(booking)
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("booking_storage_error", booking_id=booking_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to delete booking")

    logger.info("booking_deleted", booking_id=booking_id, room_id=booking.room_id, actor_id=actor.id)
    return Result.success(booking)


async def list_bookings(
    db: AsyncSession,
    actor: Actor,
    status: Optional[BookingStatus] = None,
    room_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Booking], int]:
    """
    Bookings visible to the actor, newest first.
    Tenants see their own, landlords those of their rooms, admins all.
    """
    query = select(Booking)

    if actor.is_admin:
        pass
    elif actor.is_landlord:
        query = query.join(Room, Room.id == Booking.room_id).where(Room.landlord_id == actor.id)
    else:
        query = query.where(Booking.user_id == actor.id)

    if status is not None:
        query = query.where(Booking.status == status)
    if room_id is not None:
        query = query.where(Booking.room_id == room_id)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    result = await db.execute(
        query
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
