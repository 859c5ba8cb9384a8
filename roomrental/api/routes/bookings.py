"""
Booking endpoints with concurrency-safe admission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.api.deps import get_lock, get_uow, total_pages
from roomrental.api.errors import unwrap
from roomrental.core.actor import Actor
from roomrental.core.security import get_current_actor
from roomrental.db.session import get_db
from roomrental.models.booking import BookingStatus
from roomrental.repositories.sql import SqlAlchemyUnitOfWork
from roomrental.schemas.booking import (
    BookingCreate, BookingEnvelope, BookingListResponse, BookingResponse, BookingStatusUpdate,
)
from roomrental.services import booking_service
from roomrental.services.cache_service import invalidate_room_cache
from roomrental.services.interfaces.room_lock import RoomLock

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
    room_lock: RoomLock = Depends(get_lock),
):
    """
    Request a booking. The new booking starts PENDING with its price fixed.

    Overlapping requests for the same room are serialised per room; of two
    concurrent overlapping requests exactly one succeeds, the other gets
    409 DATE_CONFLICT.
    """
    booking = unwrap(await booking_service.create_booking(uow, booking_data, actor, room_lock))
    await invalidate_room_cache()
    return BookingEnvelope(booking=BookingResponse.model_validate(booking))


@router.get("/", response_model=BookingListResponse)
async def list_bookings_endpoint(
    status: Optional[BookingStatus] = Query(None),
    room_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Bookings visible to the caller: own (tenant), own rooms' (landlord), all (admin)."""
    bookings, total = await booking_service.list_bookings(db, actor, status, room_id, page, limit)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    return unwrap(await booking_service.get_booking(uow, booking_id, actor))


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking_status_endpoint(
    booking_id: int,
    data: BookingStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Confirm, complete or cancel a booking."""
    booking = unwrap(await booking_service.transition(uow, booking_id, data.status, actor))
    await invalidate_room_cache()
    return booking


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Cancel a booking. Allowed for its tenant, the room's landlord and admins."""
    booking = unwrap(await booking_service.cancel_booking(uow, booking_id, actor))
    await invalidate_room_cache()
    return booking


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking_endpoint(
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Delete a booking. Admin only."""
    unwrap(await booking_service.delete_booking(uow, booking_id, actor))
    await invalidate_room_cache()
