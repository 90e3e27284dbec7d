"""
Redis caching for the route catalogue.

What we cache:
  - The city list ("routes:cities")
  - Destinations per origin city ("routes:destinations:{city}")

Both are read on every app launch and change only when an admin edits routes,
so admin mutations invalidate every "routes:*" key and a TTL acts as the
safety net. Availability, closed dates and prices are never cached: booking
creation must see the live route.

Redis is advisory. If it is disabled or unreachable every call falls through
to the database.
"""

import json
from typing import Optional

import redis.asyncio as redis

from coachline.core.config import get_settings
from coachline.core.logging import get_logger
from coachline.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

CITIES_KEY = "routes:cities"
KEY_PREFIX = "routes:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def _destinations_key(from_city: str) -> str:
    return f"{KEY_PREFIX}destinations:{from_city.strip().lower()}"


async def _get_list(key: str) -> Optional[list[str]]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def _set_list(key: str, values: list[str]) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(values))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def get_cached_cities() -> Optional[list[str]]:
    return await _get_list(CITIES_KEY)


async def set_cached_cities(cities: list[str]) -> None:
    await _set_list(CITIES_KEY, cities)


async def get_cached_destinations(from_city: str) -> Optional[list[str]]:
    return await _get_list(_destinations_key(from_city))


async def set_cached_destinations(from_city: str, destinations: list[str]) -> None:
    await _set_list(_destinations_key(from_city), destinations)


async def invalidate_route_cache() -> None:
    """Drop every cached catalogue entry after a route mutation."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{KEY_PREFIX}*", count=100):
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
