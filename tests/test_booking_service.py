"""
Service-level tests for booking admission and status transitions,
run against the in-memory store.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal

import pytest

from roomrental.core.actor import Actor
from roomrental.core.errors import ErrorKind, OverlapViolation
from roomrental.models import BookingStatus, RoomStatus, UserRole
from roomrental.repositories.memory import InMemoryBookingRepository, InMemoryStore, InMemoryUnitOfWork
from roomrental.schemas.booking import BookingCreate
from roomrental.services import booking_service
from roomrental.services.interfaces.repositories import NewBooking, NewReview
from roomrental.services.interfaces.room_lock import RoomLock


class YieldingBookingRepository(InMemoryBookingRepository):
    """Gives other tasks a chance to run between the overlap check and the insert."""

    async def find_overlapping(self, *args, **kwargs):
        found = await super().find_overlapping(*args, **kwargs)
        await asyncio.sleep(0.01)
        return found


class NoLock(RoomLock):
    backend = "none"

    @asynccontextmanager
    async def hold(self, room_id: int):
        yield


def racing_uow(store: InMemoryStore) -> InMemoryUnitOfWork:
    uow = InMemoryUnitOfWork(store)
    uow.bookings = YieldingBookingRepository(uow)
    return uow


def request(room_id: int, check_in: date, check_out: date, guests: int = 1) -> BookingCreate:
    return BookingCreate(room_id=room_id, check_in=check_in, check_out=check_out, guests=guests)


@pytest.mark.asyncio
async def test_booking_is_priced_per_day(uow, room_lock, memory_room, tenant_actor):
    """180 days at 6000 per day."""
    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2024, 9, 1), date(2025, 2, 28)), tenant_actor, room_lock,
    )
    assert result.ok
    assert result.value.status == BookingStatus.PENDING
    assert result.value.total_price == Decimal("1080000")
    assert result.value.user_id == tenant_actor.id


@pytest.mark.asyncio
async def test_pricing_is_deterministic(store, room_lock, make_memory_room, tenant_actor):
    """The same room rate and dates always give the same total."""
    totals = []
    for _ in range(3):
        room = make_memory_room(price=Decimal("1234.50"))
        result = await booking_service.create_booking(
            InMemoryUnitOfWork(store), request(room.id, date(2030, 1, 1), date(2030, 1, 8)), tenant_actor, room_lock,
        )
        totals.append(result.value.total_price)
    assert totals == [Decimal("8641.50")] * 3


@pytest.mark.asyncio
async def test_guest_limit_is_inclusive(uow, room_lock, memory_room, tenant_actor):
    """Exactly max_guests is fine, one more is not."""
    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2030, 1, 1), date(2030, 1, 2), guests=2), tenant_actor, room_lock,
    )
    assert result.ok

    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2030, 6, 1), date(2030, 6, 2), guests=3), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.GUEST_LIMIT_EXCEEDED
    assert result.error.message == "Maximum guests allowed: 2"


@pytest.mark.asyncio
async def test_checks_run_in_order(store, uow, room_lock, make_memory_room, tenant_actor):
    """The first failing check decides the error."""
    closed = make_memory_room(status=RoomStatus.OCCUPIED)
    result = await booking_service.create_booking(
        uow, request(closed.id, date(2030, 1, 5), date(2030, 1, 1), guests=9), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.ROOM_UNAVAILABLE

    room = make_memory_room()
    result = await booking_service.create_booking(
        uow, request(room.id, date(2030, 1, 5), date(2030, 1, 1), guests=9), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.GUEST_LIMIT_EXCEEDED

    store.add_booking(
        user_id=999, room_id=room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 10),
        total_price=Decimal("1"), status=BookingStatus.CONFIRMED,
    )
    result = await booking_service.create_booking(
        uow, request(room.id, date(2030, 1, 5), date(2030, 1, 1)), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.INVALID_DATE_RANGE

    result = await booking_service.create_booking(
        uow, request(room.id, date(2030, 1, 2), date(2030, 1, 3)), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.DATE_CONFLICT


@pytest.mark.asyncio
async def test_unknown_room(uow, room_lock, tenant_actor):
    result = await booking_service.create_booking(
        uow, request(404, date(2030, 1, 1), date(2030, 1, 2)), tenant_actor, room_lock,
    )
    assert not result.ok
    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_pending_and_confirmed_block_but_finished_do_not(store, uow, room_lock, make_memory_room, tenant_actor):
    """Only PENDING and CONFIRMED bookings occupy the calendar."""
    for existing_status, expected_ok in (
        (BookingStatus.PENDING, False),
        (BookingStatus.CONFIRMED, False),
        (BookingStatus.CANCELLED, True),
        (BookingStatus.COMPLETED, True),
    ):
        room = make_memory_room()
        store.add_booking(
            user_id=999, room_id=room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 10),
            total_price=Decimal("1"), status=existing_status,
        )
        result = await booking_service.create_booking(
            uow, request(room.id, date(2030, 1, 1), date(2030, 1, 10)), tenant_actor, room_lock,
        )
        assert result.ok is expected_ok, existing_status


@pytest.mark.asyncio
async def test_touching_dates_conflict(store, uow, room_lock, memory_room, tenant_actor):
    """Check-in on an existing stay's check-out day overlaps."""
    store.add_booking(
        user_id=999, room_id=memory_room.id, check_in=date(2024, 6, 1), check_out=date(2024, 11, 30),
        total_price=Decimal("1"), status=BookingStatus.CONFIRMED,
    )
    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2024, 11, 30), date(2024, 12, 15)), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.DATE_CONFLICT

    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2024, 5, 1), date(2024, 6, 1)), tenant_actor, room_lock,
    )
    assert result.error.kind == ErrorKind.DATE_CONFLICT


@pytest.mark.asyncio
async def test_rejection_writes_nothing(store, uow, room_lock, memory_room, tenant_actor):
    """A failed admission leaves the store untouched."""
    result = await booking_service.create_booking(
        uow, request(memory_room.id, date(2030, 1, 1), date(2030, 1, 2), guests=5), tenant_actor, room_lock,
    )
    assert not result.ok
    assert store.bookings == {}


@pytest.mark.asyncio
async def test_concurrent_overlapping_requests_admit_one(store, room_lock, memory_room):
    """Of two simultaneous overlapping requests exactly one wins."""
    alice = Actor(id=1, role=UserRole.TENANT)
    bob = Actor(id=2, role=UserRole.TENANT)

    results = await asyncio.gather(
        booking_service.create_booking(
            racing_uow(store), request(memory_room.id, date(2030, 1, 1), date(2030, 1, 5)), alice, room_lock,
        ),
        booking_service.create_booking(
            racing_uow(store), request(memory_room.id, date(2030, 1, 3), date(2030, 1, 8)), bob, room_lock,
        ),
    )

    assert sorted(r.ok for r in results) == [False, True]
    loser = next(r for r in results if not r.ok)
    assert loser.error.kind == ErrorKind.DATE_CONFLICT
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_many_concurrent_requests_admit_one(store, room_lock, memory_room):
    """Twenty tenants racing for the same dates: one booking."""
    results = await asyncio.gather(*(
        booking_service.create_booking(
            racing_uow(store),
            request(memory_room.id, date(2030, 3, 1), date(2030, 3, 4)),
            Actor(id=i, role=UserRole.TENANT),
            room_lock,
        )
        for i in range(1, 21)
    ))
    assert sum(r.ok for r in results) == 1
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_storage_constraint_reports_date_conflict(memory_room, store):
    """Without the room lock the storage constraint still refuses the second booking."""
    store.enforce_overlap = True
    lock = NoLock()

    results = await asyncio.gather(
        booking_service.create_booking(
            racing_uow(store), request(memory_room.id, date(2030, 1, 1), date(2030, 1, 5)),
            Actor(id=1, role=UserRole.TENANT), lock,
        ),
        booking_service.create_booking(
            racing_uow(store), request(memory_room.id, date(2030, 1, 2), date(2030, 1, 3)),
            Actor(id=2, role=UserRole.TENANT), lock,
        ),
    )

    assert sorted(r.ok for r in results) == [False, True]
    assert next(r for r in results if not r.ok).error.kind == ErrorKind.DATE_CONFLICT
    assert len(store.bookings) == 1


@pytest.mark.asyncio
async def test_different_rooms_do_not_block_each_other(store, room_lock, make_memory_room):
    first, second = make_memory_room(), make_memory_room()
    results = await asyncio.gather(
        booking_service.create_booking(
            racing_uow(store), request(first.id, date(2030, 1, 1), date(2030, 1, 5)),
            Actor(id=1, role=UserRole.TENANT), room_lock,
        ),
        booking_service.create_booking(
            racing_uow(store), request(second.id, date(2030, 1, 1), date(2030, 1, 5)),
            Actor(id=2, role=UserRole.TENANT), room_lock,
        ),
    )
    assert all(r.ok for r in results)


# Status transitions

@pytest.fixture
def pending_booking(store, memory_room, tenant_actor):
    return store.add_booking(
        user_id=tenant_actor.id, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3),
        total_price=Decimal("12000"), status=BookingStatus.PENDING,
    )


@pytest.mark.asyncio
async def test_landlord_confirms_and_completes(uow, pending_booking, landlord_actor):
    result = await booking_service.confirm_booking(uow, pending_booking.id, landlord_actor)
    assert result.ok
    assert result.value.status == BookingStatus.CONFIRMED

    result = await booking_service.complete_booking(uow, pending_booking.id, landlord_actor)
    assert result.value.status == BookingStatus.COMPLETED


@pytest.mark.asyncio
async def test_tenant_can_cancel_own_booking(uow, pending_booking, tenant_actor):
    result = await booking_service.cancel_booking(uow, pending_booking.id, tenant_actor)
    assert result.ok
    assert result.value.status == BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_tenant_cannot_confirm_own_booking(uow, pending_booking, tenant_actor):
    result = await booking_service.confirm_booking(uow, pending_booking.id, tenant_actor)
    assert result.error.kind == ErrorKind.UNAUTHORIZED
    assert pending_booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_admin_may_do_anything_allowed(uow, pending_booking, admin_actor):
    assert (await booking_service.confirm_booking(uow, pending_booking.id, admin_actor)).ok
    assert (await booking_service.cancel_booking(uow, pending_booking.id, admin_actor)).ok


@pytest.mark.asyncio
async def test_terminal_states_are_final(store, uow, memory_room, admin_actor):
    """Nothing leaves CANCELLED or COMPLETED."""
    for terminal in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
        booking = store.add_booking(
            user_id=1, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3),
            total_price=Decimal("1"), status=terminal,
        )
        for target in BookingStatus:
            result = await booking_service.transition(uow, booking.id, target, admin_actor)
            assert result.error.kind == ErrorKind.INVALID_TRANSITION
        assert booking.status == terminal


@pytest.mark.asyncio
async def test_stranger_is_unauthorized_before_state_check(store, uow, memory_room):
    """An unrelated user hears UNAUTHORIZED even for a finished booking."""
    booking = store.add_booking(
        user_id=1, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3),
        total_price=Decimal("1"), status=BookingStatus.CANCELLED,
    )
    stranger = Actor(id=555, role=UserRole.LANDLORD)
    result = await booking_service.cancel_booking(uow, booking.id, stranger)
    assert result.error.kind == ErrorKind.UNAUTHORIZED


@pytest.mark.asyncio
async def test_tenant_confirming_cancelled_is_invalid_transition(store, uow, memory_room, tenant_actor):
    """The state check comes before the landlord-only check."""
    booking = store.add_booking(
        user_id=tenant_actor.id, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3),
        total_price=Decimal("1"), status=BookingStatus.CANCELLED,
    )
    result = await booking_service.confirm_booking(uow, booking.id, tenant_actor)
    assert result.error.kind == ErrorKind.INVALID_TRANSITION


@pytest.mark.asyncio
async def test_transition_unknown_booking(uow, admin_actor):
    result = await booking_service.cancel_booking(uow, 12345, admin_actor)
    assert result.error.kind == ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_cancelling_frees_the_dates(store, uow, room_lock, pending_booking, memory_room, tenant_actor):
    other = Actor(id=77, role=UserRole.TENANT)
    blocked = await booking_service.create_booking(
        uow, request(memory_room.id, date(2030, 1, 1), date(2030, 1, 3)), other, room_lock,
    )
    assert blocked.error.kind == ErrorKind.DATE_CONFLICT

    await booking_service.cancel_booking(uow, pending_booking.id, tenant_actor)

    admitted = await booking_service.create_booking(
        uow, request(memory_room.id, date(2030, 1, 1), date(2030, 1, 3)), other, room_lock,
    )
    assert admitted.ok


@pytest.mark.asyncio
async def test_failed_commit_applies_no_staged_write(store, memory_room, tenant_actor):
    """A constraint failure in a later write leaves the earlier ones unapplied."""
    store.enforce_overlap = True
    store.add_booking(
        user_id=1, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 5),
        status=BookingStatus.PENDING, total_price=Decimal("1"),
    )
    other = store.add_booking(
        user_id=2, room_id=memory_room.id, check_in=date(2030, 2, 1), check_out=date(2030, 2, 3),
        status=BookingStatus.PENDING, total_price=Decimal("1"),
    )

    uow = InMemoryUnitOfWork(store)
    assert await uow.bookings.update_status(other, BookingStatus.PENDING, BookingStatus.CONFIRMED)
    await uow.reviews.create_review(NewReview(
        user_id=tenant_actor.id, room_id=memory_room.id, rating=5, comment="Lovely stay by the lake",
    ))
    await uow.bookings.create_booking(NewBooking(
        user_id=tenant_actor.id, room_id=memory_room.id, check_in=date(2030, 1, 3), check_out=date(2030, 1, 8),
        guests=1, total_price=Decimal("1"),
    ))

    with pytest.raises(OverlapViolation):
        await uow.commit()

    assert other.status == BookingStatus.PENDING
    assert store.reviews == {}
    assert len(store.bookings) == 2


@pytest.mark.asyncio
async def test_delete_booking_is_admin_only(store, uow, pending_booking, tenant_actor, landlord_actor, admin_actor):
    for actor in (tenant_actor, landlord_actor):
        result = await booking_service.delete_booking(uow, pending_booking.id, actor)
        assert result.error.kind == ErrorKind.FORBIDDEN_ROLE
    assert pending_booking.id in store.bookings

    result = await booking_service.delete_booking(uow, pending_booking.id, admin_actor)
    assert result.ok
    assert pending_booking.id not in store.bookings

    result = await booking_service.delete_booking(uow, pending_booking.id, admin_actor)
    assert result.error.kind == ErrorKind.NOT_FOUND
