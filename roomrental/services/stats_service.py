"""
Dashboard aggregations for tenants, landlords and admins.

Revenue counts CONFIRMED and COMPLETED bookings at their stored
total_price; pending and cancelled requests earn nothing.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.actor import Actor
from roomrental.models import ACTIVE_STATUSES, Booking, BookingStatus, Room, RoomStatus, User
from roomrental.schemas.booking import BookingResponse
from roomrental.schemas.stats import AdminStats, LandlordStats, MonthlyRevenue, TenantStats, TopRoom

EARNING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
RECENT_LIMIT = 5
REVENUE_WINDOW_DAYS = 183  # about six months


def _monthly_revenue(rows: list[tuple[datetime, Decimal]]) -> list[MonthlyRevenue]:
    totals: dict[tuple[int, int], Decimal] = {}
    for created_at, amount in rows:
        key = (created_at.year, created_at.month)
        totals[key] = totals.get(key, Decimal(0)) + Decimal(str(amount))
    return [
        MonthlyRevenue(month=datetime(year, month, 1).strftime("%b %Y"), revenue=float(total))
        for (year, month), total in sorted(totals.items())
    ]


def _revenue_cutoff() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=REVENUE_WINDOW_DAYS)


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0


async def _sum_price(db: AsyncSession, *conditions) -> float:
    result = await db.execute(select(func.coalesce(func.sum(Booking.total_price), 0)).where(*conditions))
    return float(result.scalar())


async def _recent(db: AsyncSession, *conditions) -> list[BookingResponse]:
    result = await db.execute(
        select(Booking).where(*conditions)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(RECENT_LIMIT)
    )
    return [BookingResponse.model_validate(b) for b in result.scalars().all()]


async def tenant_stats(db: AsyncSession, actor: Actor) -> TenantStats:
    own = Booking.user_id == actor.id
    return TenantStats(
        total_bookings=await _count(db, select(Booking.id).where(own)),
        active_bookings=await _count(db, select(Booking.id).where(own, Booking.status.in_(ACTIVE_STATUSES))),
        completed_bookings=await _count(
            db, select(Booking.id).where(own, Booking.status == BookingStatus.COMPLETED)
        ),
        total_spent=await _sum_price(db, own, Booking.status.in_(EARNING_STATUSES)),
        recent_bookings=await _recent(db, own),
    )


async def landlord_stats(db: AsyncSession, actor: Actor) -> LandlordStats:
    rooms = (await db.execute(
        select(Room.id, Room.status).where(Room.landlord_id == actor.id)
    )).all()
    room_ids = [room_id for room_id, _ in rooms]
    in_rooms = Booking.room_id.in_(room_ids)

    revenue_rows = (await db.execute(
        select(Booking.created_at, Booking.total_price).where(
            in_rooms,
            Booking.status.in_(EARNING_STATUSES),
            Booking.created_at >= _revenue_cutoff(),
        )
    )).all()

    return LandlordStats(
        total_rooms=len(rooms),
        active_rooms=sum(1 for _, room_status in rooms if room_status == RoomStatus.AVAILABLE),
        total_bookings=await _count(db, select(Booking.id).where(in_rooms)),
        pending_bookings=await _count(
            db, select(Booking.id).where(in_rooms, Booking.status == BookingStatus.PENDING)
        ),
        total_revenue=await _sum_price(db, in_rooms, Booking.status.in_(EARNING_STATUSES)),
        recent_bookings=await _recent(db, in_rooms),
        monthly_revenue=_monthly_revenue(revenue_rows),
    )


async def _group_counts(db: AsyncSession, column) -> dict[str, int]:
    result = await db.execute(select(column, func.count()).group_by(column))
    return {key.value: count for key, count in result.all()}


async def admin_stats(db: AsyncSession) -> AdminStats:
    revenue_rows = (await db.execute(
        select(Booking.created_at, Booking.total_price).where(
            Booking.status.in_(EARNING_STATUSES),
            Booking.created_at >= _revenue_cutoff(),
        )
    )).all()

    booking_count = func.count(Booking.id).label("bookings")
    top_rooms = (await db.execute(
        select(Room.id, Room.title, booking_count)
        .join(Booking, Booking.room_id == Room.id)
        .group_by(Room.id, Room.title)
        .order_by(booking_count.desc(), Room.id)
        .limit(RECENT_LIMIT)
    )).all()

    return AdminStats(
        total_users=await _count(db, select(User.id)),
        total_rooms=await _count(db, select(Room.id)),
        total_bookings=await _count(db, select(Booking.id)),
        total_revenue=await _sum_price(db, Booking.status.in_(EARNING_STATUSES)),
        users_by_role=await _group_counts(db, User.role),
        rooms_by_status=await _group_counts(db, Room.status),
        bookings_by_status=await _group_counts(db, Booking.status),
        recent_bookings=await _recent(db),
        monthly_revenue=_monthly_revenue(revenue_rows),
        top_rooms=[TopRoom(id=room_id, title=title, bookings=count) for room_id, title, count in top_rooms],
    )
