"""
Room listing endpoints with Redis caching on search.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.api.deps import get_uow, total_pages
from roomrental.api.errors import unwrap
from roomrental.core.actor import Actor
from roomrental.core.config import get_settings
from roomrental.core.logging import get_logger
from roomrental.core.security import get_current_actor
from roomrental.db.session import get_db
from roomrental.models.room import RoomStatus, RoomType
from roomrental.repositories.sql import SqlAlchemyUnitOfWork
from roomrental.schemas.room import RoomCreate, RoomDetailResponse, RoomListResponse, RoomResponse, RoomUpdate
from roomrental.services import room_service
from roomrental.services.cache_service import (
    get_cached_rooms, invalidate_room_cache, make_room_list_key, set_cached_rooms,
)
from roomrental.services.interfaces.repositories import RoomFilters
from roomrental.services.review_service import rating_summary

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("/", response_model=RoomListResponse)
async def search_rooms_endpoint(
    city: Optional[str] = Query(None),
    type: Optional[RoomType] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_guests: Optional[int] = Query(None, ge=1),
    amenities: Optional[str] = Query(None, description="Comma-separated; all must be present"),
    featured: Optional[bool] = Query(None),
    status: Optional[RoomStatus] = Query(None),
    landlord_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """
    Search active listings. Defaults to AVAILABLE rooms, featured first.
    Results are cached in Redis and invalidated on room and booking changes.
    """
    filters = RoomFilters(
        city=city,
        type=type,
        min_price=min_price,
        max_price=max_price,
        min_guests=min_guests,
        amenities=[a.strip() for a in amenities.split(",") if a.strip()] if amenities else [],
        featured=featured,
        status=status,
        landlord_id=landlord_id,
    )
    cache_key = make_room_list_key({
        "city": city, "type": type and type.value, "min_price": min_price, "max_price": max_price,
        "min_guests": min_guests, "amenities": ",".join(sorted(filters.amenities)),
        "featured": featured, "status": status and status.value, "landlord_id": landlord_id,
        "page": page, "limit": limit,
    })

    cached = await get_cached_rooms(cache_key)
    if cached:
        logger.info("rooms_list_cache_hit", page=page)
        cached["cached"] = True
        return RoomListResponse(**cached)

    rooms, total = await room_service.search_rooms(uow, filters, page, limit)
    response_data = {
        "rooms": [RoomResponse.model_validate(r).model_dump(mode="json") for r in rooms],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
        "cached": False,
    }
    await set_cached_rooms(cache_key, response_data)
    return RoomListResponse(**response_data)


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room_endpoint(
    data: RoomCreate,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Create a listing. Landlords and admins only."""
    room = unwrap(await room_service.create_room(uow, data, actor))
    await invalidate_room_cache()
    return room


@router.get("/{room_id}", response_model=RoomDetailResponse)
async def get_room_endpoint(
    room_id: int,
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
    db: AsyncSession = Depends(get_db),
):
    """Room detail with its rating summary. Not cached (status must be live)."""
    room = unwrap(await room_service.get_room(uow, room_id))
    average, count = await rating_summary(db, room_id)
    return RoomDetailResponse(
        **RoomResponse.model_validate(room).model_dump(),
        average_rating=average,
        review_count=count,
    )


@router.patch("/{room_id}", response_model=RoomResponse)
async def update_room_endpoint(
    room_id: int,
    data: RoomUpdate,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    room = unwrap(await room_service.update_room(uow, room_id, data, actor))
    await invalidate_room_cache()
    return room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room_endpoint(
    room_id: int,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Delete a room with its bookings and reviews. Owner or admin only."""
    unwrap(await room_service.delete_room(uow, room_id, actor))
    await invalidate_room_cache()
