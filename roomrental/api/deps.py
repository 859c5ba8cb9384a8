"""
Shared FastAPI dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.db.session import get_db
from roomrental.repositories.sql import SqlAlchemyUnitOfWork
from roomrental.services.interfaces.room_lock import RoomLock
from roomrental.services.lock_factory import get_room_lock


async def get_uow(db: AsyncSession = Depends(get_db)) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(db)


def get_lock() -> RoomLock:
    return get_room_lock()


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit else 0
