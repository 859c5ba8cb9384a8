"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh database (in-memory SQLite by default, or
TEST_DATABASE_URL) and each HTTP request runs in its own session, like
production. Service-level tests use the in-memory store instead.
"""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ROOM_LOCK_BACKEND", "local")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from roomrental.main import app
from roomrental.db.base import Base
from roomrental.db.session import get_db, json_serializer
from roomrental.core.actor import Actor
from roomrental.core.security import create_access_token, hash_password
from roomrental.models import Booking, BookingStatus, Room, RoomStatus, RoomType, User, UserRole
from roomrental.repositories.memory import InMemoryStore, InMemoryUnitOfWork
from roomrental.services.interfaces.local_room_lock import LocalRoomLock

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

PASSWORD = "testpassword123"


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive across sessions
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"poolclass": NullPool}


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, yield a session factory, then drop tables for isolation."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        json_serializer=json_serializer,
        **_engine_options(TEST_DATABASE_URL),
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a fresh test session."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _persist(session_factory, obj):
    async with session_factory() as session:
        session.add(obj)
        await session.commit()
        await session.refresh(obj)
    return obj


def _make_user(email: str, name: str, role: UserRole) -> User:
    return User(
        email=email,
        name=name,
        hashed_password=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def room_fields(**overrides) -> dict:
    fields = dict(
        title="Sunny room near the lake",
        description="A quiet double room with a lake view and fast wifi.",
        type=RoomType.DOUBLE,
        price=Decimal("6000"),
        size=Decimal("250"),
        location="Lakeside",
        address="Lakeside Road 7",
        city="Pokhara",
        state="Gandaki",
        zip_code="33700",
        country="Nepal",
        amenities=["wifi", "parking"],
        images=[],
        max_guests=2,
        bedrooms=1,
        bathrooms=1,
        featured=False,
        is_active=True,
        status=RoomStatus.AVAILABLE,
    )
    fields.update(overrides)
    return fields


@pytest_asyncio.fixture
async def tenant(session_factory) -> User:
    return await _persist(session_factory, _make_user("tenant@example.com", "Tina Tenant", UserRole.TENANT))


@pytest_asyncio.fixture
async def other_tenant(session_factory) -> User:
    return await _persist(session_factory, _make_user("other@example.com", "Oscar Other", UserRole.TENANT))


@pytest_asyncio.fixture
async def landlord(session_factory) -> User:
    return await _persist(session_factory, _make_user("landlord@example.com", "Lara Landlord", UserRole.LANDLORD))


@pytest_asyncio.fixture
async def other_landlord(session_factory) -> User:
    return await _persist(session_factory, _make_user("owner2@example.com", "Omar Owner", UserRole.LANDLORD))


@pytest_asyncio.fixture
async def admin(session_factory) -> User:
    return await _persist(session_factory, _make_user("admin@example.com", "Ada Admin", UserRole.ADMIN))


@pytest.fixture
def tenant_headers(tenant: User) -> dict:
    return headers_for(tenant)


@pytest.fixture
def landlord_headers(landlord: User) -> dict:
    return headers_for(landlord)


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return headers_for(admin)


@pytest.fixture
def other_tenant_headers(other_tenant: User) -> dict:
    return headers_for(other_tenant)


@pytest.fixture
def other_landlord_headers(other_landlord: User) -> dict:
    return headers_for(other_landlord)


@pytest_asyncio.fixture
async def make_room(session_factory, landlord: User):
    """Factory inserting a room owned by the landlord fixture."""

    async def factory(**overrides) -> Room:
        return await _persist(session_factory, Room(**room_fields(landlord_id=landlord.id, **overrides)))

    return factory


@pytest_asyncio.fixture
async def room(make_room) -> Room:
    """An AVAILABLE room for two guests at 6000 per day."""
    return await make_room()


@pytest_asyncio.fixture
async def make_booking(session_factory):
    """Factory inserting a booking row directly, bypassing admission."""

    async def factory(user: User, room: Room, check_in: date, check_out: date, status: BookingStatus) -> Booking:
        return await _persist(session_factory, Booking(
            user_id=user.id,
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            guests=1,
            total_price=Decimal("1000"),
            status=status,
        ))

    return factory


# In-memory fixtures for service-level tests

@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow(store: InMemoryStore) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(store)


@pytest.fixture
def room_lock() -> LocalRoomLock:
    return LocalRoomLock(blocking_timeout=5)


@pytest.fixture
def tenant_actor() -> Actor:
    return Actor(id=100, role=UserRole.TENANT)


@pytest.fixture
def landlord_actor() -> Actor:
    return Actor(id=200, role=UserRole.LANDLORD)


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id=300, role=UserRole.ADMIN)


@pytest.fixture
def make_memory_room(store: InMemoryStore, landlord_actor: Actor):
    def factory(**overrides) -> Room:
        return store.add_room(**room_fields(landlord_id=landlord_actor.id, **overrides))

    return factory


@pytest.fixture
def memory_room(make_memory_room) -> Room:
    return make_memory_room()
