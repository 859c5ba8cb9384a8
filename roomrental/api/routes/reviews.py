"""
Review endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.api.deps import get_uow, total_pages
from roomrental.api.errors import unwrap
from roomrental.core.actor import Actor
from roomrental.core.security import get_current_actor
from roomrental.db.session import get_db
from roomrental.repositories.sql import SqlAlchemyUnitOfWork
from roomrental.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse
from roomrental.services import review_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get("/", response_model=ReviewListResponse)
async def list_reviews_endpoint(
    room_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    reviews, total = await review_service.list_reviews(db, room_id, page, limit)
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
    )


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review_endpoint(
    data: ReviewCreate,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    """Review a room after a completed stay. One review per room."""
    return unwrap(await review_service.create_review(uow, data, actor))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review_endpoint(
    review_id: int,
    actor: Actor = Depends(get_current_actor),
    uow: SqlAlchemyUnitOfWork = Depends(get_uow),
):
    unwrap(await review_service.delete_review(uow, review_id, actor))
