"""
Authentication and user management.
"""

from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from roomrental.core.actor import Actor
from roomrental.models import Booking, Review, Room
from roomrental.models.user import User, UserRole
from roomrental.schemas.user import UserCreate, UserLogin, UserUpdate
from roomrental.core.security import hash_password, verify_password, create_access_token
from roomrental.core.logging import get_logger

logger = get_logger(__name__)

# Fields a user may not change on their own account
ADMIN_ONLY_FIELDS = {"role", "is_active"}


async def _email_taken(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    return (await db.execute(query)).scalar_one_or_none() is not None


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new tenant or landlord with hashed password.
    Raises 409 if the email already exists.
    """
    if await _email_taken(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=user_data.email,
        name=user_data.name,
        phone=user_data.phone,
        role=user_data.role,
        hashed_password=hash_password(user_data.password),
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role.value)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[User, str]:
    """
    Authenticate a user and return it with a fresh JWT access token.
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    logger.info("user_logged_in", user_id=user.id)
    return user, token


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def get_visible_user(db: AsyncSession, user_id: int, actor: Actor) -> User:
    """Users read their own profile; admins read anyone's."""
    if actor.id != user_id and not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return await get_user(db, user_id)


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate, actor: Actor) -> User:
    """Users edit their own profile; admins edit anyone, including role and active flag."""
    if actor.id != user_id and not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    user = await get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True)
    if not actor.is_admin:
        for name in ADMIN_ONLY_FIELDS & changes.keys():
            changes.pop(name)

    if "email" in changes and await _email_taken(db, changes["email"], exclude_id=user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    for name, value in changes.items():
        setattr(user, name, value)
    await db.commit()
    await db.refresh(user)

    logger.info("user_updated", user_id=user_id, fields=sorted(changes), actor_id=actor.id)
    return user


async def delete_user(db: AsyncSession, user_id: int, actor: Actor) -> None:
    """
    Delete an account together with its listings, bookings and reviews.
    Admin only, and an admin cannot delete their own account.
    """
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can delete users")
    if actor.id == user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )

    await get_user(db, user_id)
    owned_rooms = select(Room.id).where(Room.landlord_id == user_id)
    for model in (Review, Booking):
        await db.execute(
            delete(model)
            .where(or_(model.user_id == user_id, model.room_id.in_(owned_rooms)))
            .execution_options(synchronize_session=False)
        )
    await db.execute(delete(Room).where(Room.landlord_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()

    logger.info("user_deleted", user_id=user_id, actor_id=actor.id)


async def list_users(
    db: AsyncSession,
    role: Optional[UserRole] = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[User], int]:
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
