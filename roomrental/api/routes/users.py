"""
User profile and admin user-management endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.api.deps import total_pages
from roomrental.core.actor import Actor
from roomrental.core.security import get_current_actor, require_roles
from roomrental.db.session import get_db
from roomrental.models.user import UserRole
from roomrental.schemas.user import UserListResponse, UserResponse, UserUpdate
from roomrental.services.auth_service import delete_user, get_user, get_visible_user, list_users, update_user
from roomrental.services.cache_service import invalidate_room_cache

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def read_me(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, actor.id)


@router.get("/", response_model=UserListResponse)
async def list_users_endpoint(
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List all users. Admin only."""
    users, total = await list_users(db, role, page, limit)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(
    user_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Read a profile. Users see their own; admins see anyone's."""
    return await get_visible_user(db, user_id, actor)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_endpoint(
    user_id: int,
    data: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Update a profile. Role and active flag are ignored unless the caller is an admin."""
    return await update_user(db, user_id, data, actor)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_endpoint(
    user_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Delete an account with its rooms, bookings and reviews. Admin only, never your own."""
    await delete_user(db, user_id, actor)
    await invalidate_room_cache()
