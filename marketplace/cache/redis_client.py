"""
Redis client - item detail cache.
Challenge: Detail pages are read far more often than items change; Redis may be down.
Design: Cache-aside keyed by item id. Every owner change invalidates; misses and
errors fall through to the database.
"""

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from marketplace.config import get_settings

logger = logging.getLogger(__name__)

ITEM_KEY_PREFIX = "item:"
ITEM_TTL_SECONDS = 300

_redis: Redis | None = None


def item_key(item_id: str) -> str:
    return f"{ITEM_KEY_PREFIX}{item_id}"


async def get_redis() -> Redis:
    """Shared client; redis-py manages the connection pool."""
    global _redis
    if _redis is None:
        _redis = Redis.from_url(get_settings().redis_url, encoding="utf-8", decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


async def get_cached_item(item_id: str) -> dict[str, Any] | None:
    """Serialized item detail, or None on miss, when disabled, or when Redis fails."""
    if not get_settings().cache_enabled:
        return None
    try:
        raw = await (await get_redis()).get(item_key(item_id))
    except RedisError as exc:
        logger.debug("Item cache read failed for %s: %s", item_id, exc)
        return None
    return json.loads(raw) if raw else None


async def cache_item(item_id: str, payload: dict[str, Any]) -> bool:
    if not get_settings().cache_enabled:
        return False
    try:
        await (await get_redis()).setex(item_key(item_id), ITEM_TTL_SECONDS, json.dumps(payload))
    except RedisError as exc:
        logger.debug("Item cache write failed for %s: %s", item_id, exc)
        return False
    return True


async def invalidate_item(item_id: str) -> bool:
    """Drop the cached detail after the item or its images change."""
    if not get_settings().cache_enabled:
        return False
    try:
        await (await get_redis()).delete(item_key(item_id))
    except RedisError as exc:
        logger.warning("Item cache invalidation failed for %s: %s", item_id, exc)
        return False
    return True
