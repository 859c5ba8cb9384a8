"""
Redis caching service for room search results.

CACHING STRATEGY
================

What we cache:
  - Room search responses (paginated, JSON-serialized)
  - Cache key pattern: "rooms:list:<sorted query parameters>"

Why:
  - Browsing listings is by far the most frequent read
  - Listings change only on room edits, bookings and status transitions

Invalidation strategy:
  - On room create/update/delete: delete all room list keys
  - On booking creation and booking status transitions: delete all room list keys
  - TTL-based expiry as safety net (5 minutes)

  All room list keys share the "rooms:list:" prefix so we can SCAN and delete them.

Why NOT cache room detail or availability:
  - Booking admission must see live room status and live bookings
"""

import json
from typing import Any, Optional

from roomrental.core.config import get_settings
from roomrental.core.logging import get_logger
from roomrental.core.metrics import record_cache_operation
from roomrental.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()

ROOM_LIST_PREFIX = "rooms:list:"


def make_room_list_key(params: dict[str, Any]) -> str:
    parts = [
        f"{name}={params[name]}"
        for name in sorted(params)
        if params[name] not in (None, "", [])
    ]
    return ROOM_LIST_PREFIX + "&".join(parts)


async def get_cached_rooms(key: str) -> Optional[dict]:
    """Retrieve a cached room search response."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_rooms(key: str, data: dict) -> None:
    """Cache a room search response with TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_room_cache() -> None:
    """
    Invalidate all cached room listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{ROOM_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
