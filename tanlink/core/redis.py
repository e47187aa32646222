"""Redis client for the public snapshot cache."""

import json
from typing import Any

import redis.asyncio as redis
import structlog

from tanlink.core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None

SNAPSHOT_CACHE_PREFIX = "snapshot:"


async def get_redis() -> redis.Redis:
    """Get the Redis client instance, creating it if necessary."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Redis client initialized", url=settings.redis_url)
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")


def _snapshot_cache_key(handle: str) -> str:
    return f"{SNAPSHOT_CACHE_PREFIX}{handle.lower()}"


async def get_cached_snapshot(handle: str) -> dict[str, Any] | None:
    """Get a public profile snapshot from cache.

    Returns None on a miss, when caching is disabled, or when Redis fails;
    the caller then reads the store.
    """
    if not settings.cache_enabled:
        return None

    client = await get_redis()
    try:
        data = await client.get(_snapshot_cache_key(handle))
        if data:
            logger.debug("Snapshot cache hit", handle=handle)
            return json.loads(data)
        logger.debug("Snapshot cache miss", handle=handle)
        return None
    except redis.RedisError as e:
        logger.warning("Redis get error", handle=handle, error=str(e))
        return None


async def cache_snapshot(
    handle: str,
    snapshot: dict[str, Any],
    ttl: int | None = None,
) -> None:
    """Cache a public profile snapshot by handle.

    Args:
        handle: Handle the snapshot was resolved for
        snapshot: JSON-serializable snapshot
        ttl: Time to live in seconds (defaults to settings.snapshot_cache_ttl)
    """
    if not settings.cache_enabled:
        return

    ttl = ttl or settings.snapshot_cache_ttl
    client = await get_redis()
    try:
        await client.setex(_snapshot_cache_key(handle), ttl, json.dumps(snapshot))
        logger.debug("Snapshot cached", handle=handle, ttl=ttl)
    except redis.RedisError as e:
        logger.warning("Redis set error", handle=handle, error=str(e))


async def invalidate_snapshot_cache(*handles: str | None) -> None:
    """Drop cached snapshots after an owner mutation.

    Accepts several handles so a handle change can evict both the old and
    the new key in one call. None entries are ignored.
    """
    keys = [_snapshot_cache_key(h) for h in handles if h]
    if not settings.cache_enabled or not keys:
        return

    client = await get_redis()
    try:
        await client.delete(*keys)
        logger.debug("Snapshot cache invalidated", keys=keys)
    except redis.RedisError as e:
        logger.warning("Redis delete error", keys=keys, error=str(e))
