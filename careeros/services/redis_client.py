"""
Redis connection for the cached-view layer and the rate limiter.

The client is optional: without REDIS_URL, or when the server cannot be
reached at startup, `get_redis()` returns None and every cached view is
recomputed from the entity stores.
"""

import logging
from typing import Optional

import redis.asyncio as aioredis

from careeros.config import get_settings

_log = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> Optional[aioredis.Redis]:
    """Connect to `url` (default: REDIS_URL). Returns the client or None."""
    global _redis_client
    url = url if url is not None else get_settings().redis_url
    if not url:
        _log.info("[redis] REDIS_URL not set, cached views disabled")
        return None

    client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=5, socket_timeout=5)
    try:
        await client.ping()
    except Exception as exc:
        _log.warning(f"[redis] {url} unreachable ({exc}), cached views disabled")
        await client.aclose()
        return None

    _redis_client = client
    _log.info("[redis] Connected")
    return client


async def close_redis() -> None:
    global _redis_client
    client, _redis_client = _redis_client, None
    if client is not None:
        await client.aclose()


def get_redis() -> Optional[aioredis.Redis]:
    return _redis_client


async def is_redis_healthy() -> bool:
    """Ping the server; False when disabled or unreachable."""
    if _redis_client is None:
        return False
    try:
        return bool(await _redis_client.ping())
    except Exception:
        return False
