"""
Room listing service: CRUD and search.

Only landlords and admins create listings; only the owning landlord or an
admin edits or deletes one. Deleting a room removes its bookings and reviews
through explicit repository calls.
"""

from roomrental.core.actor import Actor
from roomrental.core.errors import ErrorKind, Result, StorageError
from roomrental.core.logging import get_logger
from roomrental.models import Room, RoomStatus
from roomrental.schemas.room import RoomCreate, RoomUpdate
from roomrental.services.interfaces.repositories import RoomFilters, UnitOfWork

logger = get_logger(__name__)

# Fields only an admin may change on a listing
ADMIN_ONLY_FIELDS = {"featured"}


async def create_room(uow: UnitOfWork, data: RoomCreate, actor: Actor) -> Result[Room]:
    if not (actor.is_landlord or actor.is_admin):
        return Result.failure(ErrorKind.FORBIDDEN_ROLE, "Only landlords can create rooms")

    fields = data.model_dump()
    if not actor.is_admin:
        for name in ADMIN_ONLY_FIELDS:
            fields.pop(name, None)

    room = Room(
        **fields,
        status=RoomStatus.AVAILABLE,
        is_active=True,
        landlord_id=actor.id,
    )
    try:
        room = await uow.rooms.add_room(room)
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("room_storage_error", error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to create room")

    logger.info("room_created", room_id=room.id, landlord_id=actor.id, price=str(room.price))
    return Result.success(room)


async def get_room(uow: UnitOfWork, room_id: int) -> Result[Room]:
    room = await uow.rooms.get_room(room_id)
    if room is None:
        return Result.failure(ErrorKind.NOT_FOUND, "Room not found")
    return Result.success(room)


async def _owned_room(uow: UnitOfWork, room_id: int, actor: Actor) -> Result[Room]:
    room = await uow.rooms.get_room(room_id)
    if room is None:
        return Result.failure(ErrorKind.NOT_FOUND, "Room not found")
    if room.landlord_id != actor.id and not actor.is_admin:
        return Result.failure(ErrorKind.UNAUTHORIZED, "You can only manage your own rooms")
    return Result.success(room)


async def update_room(uow: UnitOfWork, room_id: int, data: RoomUpdate, actor: Actor) -> Result[Room]:
    """
    Partial update. Changing the price never touches existing bookings:
    their total_price is a snapshot taken at admission.
    """
    found = await _owned_room(uow, room_id, actor)
    if not found.ok:
        return found
    room = found.value

    changes = data.model_dump(exclude_unset=True)
    if not actor.is_admin:
        for name in ADMIN_ONLY_FIELDS & changes.keys():
            changes.pop(name)

    try:
        for name, value in changes.items():
            setattr(room, name, value)
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("room_storage_error", room_id=room_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to update room")

    logger.info("room_updated", room_id=room_id, fields=sorted(changes))
    return Result.success(room)


async def delete_room(uow: UnitOfWork, room_id: int, actor: Actor) -> Result[Room]:
    found = await _owned_room(uow, room_id, actor)
    if not found.ok:
        return found

    try:
        await uow.rooms.delete_room(room_id)
        await uow.commit()
    except StorageError as e:
        await uow.rollback()
        logger.error("room_storage_error", room_id=room_id, error=str(e))
        return Result.failure(ErrorKind.STORAGE_ERROR, "Failed to delete room")

    logger.info("room_deleted", room_id=room_id, actor_id=actor.id)
    return found


async def search_rooms(uow: UnitOfWork, filters: RoomFilters, page: int, limit: int) -> tuple[list[Room], int]:
    if filters.status is None:
        filters.status = RoomStatus.AVAILABLE
    return await uow.rooms.search(filters, page, limit)
