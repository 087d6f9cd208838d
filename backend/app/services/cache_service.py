"""
Redis caching service for event listings.

CACHING STRATEGY
================

What we cache:
  - Event listing responses (one page, JSON-serialized)
  - Key pattern: "eventos:list:{status}:{type}:{search}:{page}:{limit}"
    e.g. "eventos:list:published:all:none:1:12"

Invalidation strategy: tags, not enumeration
  Every listing entry is tagged at write time with the ids of the events it
  shows. The tag is a Redis set "eventos:tag:{event_id}" holding the listing
  keys that contain that event. When an event's participant count changes we
  read its tag set and delete exactly those keys, whatever status / type /
  search term / page produced them.

  Listing membership changes (a new event) cannot be expressed per event, so
  they drop every "eventos:list:*" key with SCAN.

  Every entry also carries a short TTL. A reader that computed a page from the
  database just before a write commits can store it just after the sweep;
  the TTL bounds how long such an entry survives.

Failure policy:
  The cache is a disposable projection of the database. Every Redis error is
  logged and swallowed: reads fall through to the database and writes that
  cannot invalidate still succeed.
"""

import json
from dataclasses import dataclass
from typing import Iterable, Optional

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_invalidation, record_cache_operation
from app.infrastructure.redis_client import get_redis

logger = get_logger(__name__)

LIST_KEY_PREFIX = "eventos:list:"
TAG_KEY_PREFIX = "eventos:tag:"
# Tag sets outlive the entries they index so a tag never disappears first
TAG_TTL_GRACE_SECONDS = 30


@dataclass(frozen=True)
class EventListFilters:
    status: str = "published"
    type: Optional[str] = None
    search: Optional[str] = None
    page: int = 1
    limit: int = 12

    @property
    def normalized_search(self) -> Optional[str]:
        if self.search is None:
            return None
        value = self.search.strip().lower()
        return value or None


def make_event_list_key(filters: EventListFilters) -> str:
    return (
        f"{LIST_KEY_PREFIX}{filters.status or 'published'}:{filters.type or 'all'}:"
        f"{filters.normalized_search or 'none'}:{filters.page}:{filters.limit}"
    )


def make_event_tag_key(event_id: int) -> str:
    return f"{TAG_KEY_PREFIX}{event_id}"


async def get_cached_event_list(filters: EventListFilters) -> Optional[dict]:
    """Retrieve a cached listing page, or None on miss / cache unavailable."""
    client = await get_redis()
    if not client:
        return None

    key = make_event_list_key(filters)
    try:
        data = await client.get(key)
    except Exception as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    if data is None:
        record_cache_operation("get", "miss")
        logger.debug("cache_miss", key=key)
        return None

    record_cache_operation("get", "hit")
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def set_cached_event_list(
    filters: EventListFilters,
    payload: dict,
    event_ids: Iterable[int],
) -> None:
    """Store a listing page with TTL and register it under each shown event's tag."""
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    ttl = settings.EVENT_LIST_CACHE_TTL
    key = make_event_list_key(filters)
    try:
        async with client.pipeline(transaction=True) as pipe:
            pipe.setex(key, ttl, json.dumps(payload, default=str))
            for event_id in set(event_ids):
                tag = make_event_tag_key(event_id)
                pipe.sadd(tag, key)
                pipe.expire(tag, ttl + TAG_TTL_GRACE_SECONDS)
            await pipe.execute()
        record_cache_operation("set", "ok")
        logger.debug("cache_set", key=key, ttl=ttl)
    except Exception as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event(event_id: int) -> int:
    """
    Drop every cached listing that shows this event.
    Returns the number of listing keys deleted (0 when the cache is unavailable).
    """
    client = await get_redis()
    if not client:
        return 0

    tag = make_event_tag_key(event_id)
    try:
        keys = await client.smembers(tag)
        # Deleting a key that already expired is a no-op
        await client.delete(*keys, tag)
    except Exception as e:
        record_cache_invalidation("event", ok=False)
        logger.error("cache_invalidation_error", scope="event", event_id=event_id, error=str(e))
        return 0

    record_cache_invalidation("event", ok=True)
    logger.info("cache_invalidated", scope="event", event_id=event_id, keys_deleted=len(keys))
    return len(keys)


async def invalidate_all_event_lists() -> int:
    """
    Drop every cached listing and tag set.
    Used when listing membership changes (event created).
    """
    client = await get_redis()
    if not client:
        return 0

    deleted = 0
    try:
        for pattern in (f"{LIST_KEY_PREFIX}*", f"{TAG_KEY_PREFIX}*"):
            async for key in client.scan_iter(match=pattern, count=100):
                deleted += await client.delete(key)
    except Exception as e:
        record_cache_invalidation("all", ok=False)
        logger.error("cache_invalidation_error", scope="all", error=str(e))
        return deleted

    record_cache_invalidation("all", ok=True)
    logger.info("cache_invalidated", scope="all", keys_deleted=deleted)
    return deleted


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
