"""
Tests for review rules: only after a completed stay, once per room.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from roomrental.core.actor import Actor
from roomrental.core.errors import ErrorKind
from roomrental.models import BookingStatus, UserRole
from roomrental.repositories.memory import InMemoryReviewRepository, InMemoryUnitOfWork
from roomrental.schemas.review import ReviewCreate
from roomrental.services import review_service

COMMENT = "Lovely stay, quiet and clean."


def review(room_id: int, rating: int = 5) -> dict:
    return {"room_id": room_id, "rating": rating, "comment": COMMENT}


@pytest.mark.asyncio
async def test_pending_stay_cannot_review(client: AsyncClient, tenant, room, tenant_headers, make_booking):
    """A booking that is only PENDING does not entitle a review."""
    await make_booking(tenant, room, date(2030, 1, 1), date(2030, 1, 3), BookingStatus.PENDING)

    response = await client.post("/api/v1/reviews/", json=review(room.id), headers=tenant_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "REVIEW_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_completed_stay_reviews_once(client: AsyncClient, tenant, room, tenant_headers, make_booking):
    """After a COMPLETED stay the first review is accepted, the second is a duplicate."""
    await make_booking(tenant, room, date(2030, 1, 1), date(2030, 1, 3), BookingStatus.COMPLETED)

    first = await client.post("/api/v1/reviews/", json=review(room.id), headers=tenant_headers)
    assert first.status_code == 201
    assert first.json()["user_id"] == tenant.id

    second = await client.post("/api/v1/reviews/", json=review(room.id, rating=1), headers=tenant_headers)
    assert second.status_code == 409
    assert second.json()["error"] == "DUPLICATE_REVIEW"


@pytest.mark.asyncio
async def test_review_unknown_room(client: AsyncClient, tenant_headers):
    response = await client.post("/api/v1/reviews/", json=review(99999), headers=tenant_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_review_validation(client: AsyncClient, room, tenant_headers):
    """Ratings outside 1..5 and short comments are rejected."""
    response = await client.post("/api/v1/reviews/", json=review(room.id, rating=6), headers=tenant_headers)
    assert response.status_code == 422

    response = await client.post(
        "/api/v1/reviews/", json={"room_id": room.id, "rating": 4, "comment": "ok"}, headers=tenant_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_reviews_feed_room_rating(
    client: AsyncClient, tenant, other_tenant, room, tenant_headers, other_tenant_headers, make_booking,
):
    """Room detail averages the ratings and the list filters by room."""
    for user, headers, rating in ((tenant, tenant_headers, 5), (other_tenant, other_tenant_headers, 2)):
        await make_booking(user, room, date(2030, 1, 1), date(2030, 1, 3), BookingStatus.COMPLETED)
        response = await client.post("/api/v1/reviews/", json=review(room.id, rating=rating), headers=headers)
        assert response.status_code == 201

    detail = (await client.get(f"/api/v1/rooms/{room.id}")).json()
    assert detail["review_count"] == 2
    assert detail["average_rating"] == 3.5

    listing = (await client.get(f"/api/v1/reviews/?room_id={room.id}")).json()
    assert listing["total"] == 2


@pytest.mark.asyncio
async def test_author_deletes_review(client: AsyncClient, tenant, room, tenant_headers, other_tenant_headers, make_booking):
    """Only the author (or an admin) may delete a review."""
    await make_booking(tenant, room, date(2030, 1, 1), date(2030, 1, 3), BookingStatus.COMPLETED)
    review_id = (await client.post("/api/v1/reviews/", json=review(room.id), headers=tenant_headers)).json()["id"]

    assert (await client.delete(f"/api/v1/reviews/{review_id}", headers=other_tenant_headers)).status_code == 403
    assert (await client.delete(f"/api/v1/reviews/{review_id}", headers=tenant_headers)).status_code == 204
    assert (await client.delete(f"/api/v1/reviews/{review_id}", headers=tenant_headers)).status_code == 404


class YieldingReviewRepository(InMemoryReviewRepository):
    """Lets a second submission pass the duplicate lookup before the first commits."""

    async def get_for_user_and_room(self, user_id: int, room_id: int):
        found = await super().get_for_user_and_room(user_id, room_id)
        await asyncio.sleep(0.01)
        return found


def racing_uow(store) -> InMemoryUnitOfWork:
    uow = InMemoryUnitOfWork(store)
    uow.reviews = YieldingReviewRepository(uow)
    return uow


@pytest.mark.asyncio
async def test_racing_duplicate_review_is_reported(store, memory_room):
    """Two simultaneous submissions: one review, one DUPLICATE_REVIEW."""
    author = Actor(id=1, role=UserRole.TENANT)
    store.add_booking(
        user_id=author.id, room_id=memory_room.id, check_in=date(2030, 1, 1), check_out=date(2030, 1, 3),
        total_price=Decimal("1"), status=BookingStatus.COMPLETED,
    )
    data = ReviewCreate(room_id=memory_room.id, rating=4, comment=COMMENT)

    results = await asyncio.gather(
        review_service.create_review(racing_uow(store), data, author),
        review_service.create_review(racing_uow(store), data, author),
    )

    assert sorted(r.ok for r in results) == [False, True]
    assert next(r for r in results if not r.ok).error.kind == ErrorKind.DUPLICATE_REVIEW
    assert len(store.reviews) == 1
