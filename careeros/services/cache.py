"""
Redis cache layer for derived dashboard views.

Entries are JSON values under careeros:{key}. Invalidation does not delete an
entry: it sets a careeros:stale:{key} marker and bumps careeros:gen:{key}. A
read that finds the marker is a miss.

A recomputed value is only written back (clearing the marker) if the key's
generation is unchanged since the reader started, so a read that raced an
invalidation can never make its stale result look fresh.

Read/write failures degrade to a miss. A failed invalidation is not allowed
to degrade: it falls back to dropping the values, and raises
CacheInvalidationError if that fails too.

Usage:
    generation = await cache_generation(key)
    value = await compute()
    await cache_set(key, value, ttl=300, generation=generation)
"""

import json
import logging
from typing import Any, Iterable, List, Optional

from redis.exceptions import WatchError

from careeros.exceptions import CacheInvalidationError
from careeros.services.redis_client import get_redis
from careeros.utils.metrics import inc

_log = logging.getLogger(__name__)

KEY_PREFIX = "careeros:"
STALE_PREFIX = "careeros:stale:"
GENERATION_PREFIX = "careeros:gen:"

# Stale markers and generations must outlive any value they guard
STALE_MARKER_TTL = 24 * 3600


def _value_key(key: str) -> str:
    return f"{KEY_PREFIX}{key}"


def _stale_key(key: str) -> str:
    return f"{STALE_PREFIX}{key}"


def _generation_key(key: str) -> str:
    return f"{GENERATION_PREFIX}{key}"


async def cache_get(key: str) -> Optional[Any]:
    """Fetch a JSON value. Returns None on miss, on a stale entry, or on error."""
    r = get_redis()
    if r is None:
        return None
    try:
        pipe = r.pipeline(transaction=True)
        pipe.get(_value_key(key))
        pipe.exists(_stale_key(key))
        raw, stale = await pipe.execute()
        if raw is None:
            inc("cache.miss")
            return None
        if stale:
            inc("cache.stale")
            _log.debug(f"[cache] {key} is stale, recomputing")
            return None
        inc("cache.hit")
        return json.loads(raw)
    except Exception as exc:
        _log.debug(f"[cache] GET {key} failed: {exc}")
        return None


async def cache_generation(key: str) -> Optional[int]:
    """
    Current invalidation generation of `key`; read it before computing a
    value to write back. None means the value must not be cached.
    """
    r = get_redis()
    if r is None:
        return None
    try:
        return int(await r.get(_generation_key(key)) or 0)
    except Exception as exc:
        _log.debug(f"[cache] generation read for {key} failed: {exc}")
        return None


async def cache_set(key: str, value: Any, ttl: int = 300, generation: Optional[int] = None) -> bool:
    """
    Store a fresh JSON value and clear any stale marker. Returns success.

    With `generation`, the write is skipped (False) if the key was
    invalidated after that generation was read.
    """
    r = get_redis()
    if r is None:
        return False
    try:
        async with r.pipeline(transaction=True) as pipe:
            if generation is not None:
                await pipe.watch(_generation_key(key))
                current = int(await pipe.get(_generation_key(key)) or 0)
                if current != generation:
                    await pipe.unwatch()
                    inc("cache.write_skipped")
                    _log.debug(f"[cache] {key} invalidated during recompute, not caching")
                    return False
                pipe.multi()
            pipe.set(_value_key(key), json.dumps(value), ex=min(ttl, STALE_MARKER_TTL))
            pipe.delete(_stale_key(key))
            await pipe.execute()
        return True
    except WatchError:
        inc("cache.write_skipped")
        _log.debug(f"[cache] {key} invalidated during write, not caching")
        return False
    except Exception as exc:
        _log.debug(f"[cache] SET {key} failed: {exc}")
        return False


async def _mark_stale(r, keys: List[str]) -> None:
    pipe = r.pipeline(transaction=True)
    for key in keys:
        pipe.set(_stale_key(key), "1", ex=STALE_MARKER_TTL)
        pipe.incr(_generation_key(key))
        pipe.expire(_generation_key(key), STALE_MARKER_TTL)
    await pipe.execute()


async def _drop_values(r, keys: List[str]) -> None:
    pipe = r.pipeline(transaction=False)
    for key in keys:
        pipe.delete(_value_key(key))
        pipe.incr(_generation_key(key))
        pipe.expire(_generation_key(key), STALE_MARKER_TTL)
    await pipe.execute()


async def cache_invalidate(keys: Iterable[str]) -> List[str]:
    """
    Mark every key stale. Returns the keys that were marked.

    Marking an already-stale key again only bumps its generation. If the
    marking transaction fails, the cached values are deleted instead.
    """
    keys = list(keys)
    r = get_redis()
    if r is None or not keys:
        return []
    try:
        await _mark_stale(r, keys)
    except Exception as exc:
        _log.warning(f"[cache] marking {keys} stale failed ({exc}), deleting values instead")
        try:
            await _drop_values(r, keys)
        except Exception as drop_exc:
            _log.error(f"[cache] could not invalidate {keys}: {drop_exc}")
            raise CacheInvalidationError(keys) from drop_exc
        inc("cache.dropped", len(keys))
        return keys
    inc("cache.invalidated", len(keys))
    _log.debug("cache.invalidated", extra={"keys": keys})
    return keys


async def is_stale(key: str) -> bool:
    """True if the key has been invalidated and not rewritten since."""
    r = get_redis()
    if r is None:
        return False
    try:
        return bool(await r.exists(_stale_key(key)))
    except Exception as exc:
        _log.debug(f"[cache] EXISTS {key} failed: {exc}")
        return False
