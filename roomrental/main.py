"""
Room Rental API - Main Application Entry Point

A room-rental marketplace where landlords list rooms and tenants book them:
- Double-booking-safe admission (per-room lock, row lock, exclusion constraint)
- Deterministic nightly pricing fixed at booking time
- Booking status workflow with role-checked transitions
- Redis caching of room search, structured logging, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomrental.core.config import get_settings
from roomrental.core.logging import setup_logging, get_logger
from roomrental.core.metrics import metrics_endpoint
from roomrental.api.errors import ApiError, api_error_handler
from roomrental.api.router import api_router
from roomrental.api.middleware import RequestLoggingMiddleware
from roomrental.infrastructure.redis_client import get_redis, close_redis
from roomrental.services.cache_service import get_cache_stats
from roomrental.services.lock_factory import get_room_lock

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        room_lock_backend=settings.ROOM_LOCK_BACKEND,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    get_room_lock()

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Room rental marketplace API with double-booking-safe reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(ApiError, api_error_handler)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
