"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from roomrental.api.routes import auth, users, rooms, bookings, reviews, stats

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(rooms.router)
api_router.include_router(bookings.router)
api_router.include_router(reviews.router)
api_router.include_router(stats.router)
