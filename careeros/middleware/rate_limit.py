"""
Redis-backed fixed window rate limiter middleware.

Falls back to no-op when Redis is unavailable (the slowapi decorators on
the completion, progress and post routes remain as backup).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from careeros.middleware.correlation import user_id_from_path
from careeros.services.redis_client import get_redis

_log = logging.getLogger(__name__)

# Requests per window
USER_LIMIT = 200
ANONYMOUS_LIMIT = 60
WINDOW_SECONDS = 60

# Paths that bypass rate limiting
EXEMPT_PATHS = frozenset({"/health", "/metrics", "/"})


class RedisRateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        r = get_redis()
        if r is None:
            return await call_next(request)

        user_id = user_id_from_path(request.url.path)
        if user_id:
            key = f"careeros:rl:user:{user_id}"
            limit = USER_LIMIT
        else:
            client_ip = request.client.host if request.client else "unknown"
            key = f"careeros:rl:ip:{client_ip}"
            limit = ANONYMOUS_LIMIT

        now = int(time.time())
        window_key = f"{key}:{now // WINDOW_SECONDS}"
        try:
            pipe = r.pipeline(transaction=True)
            pipe.incr(window_key)
            pipe.expire(window_key, WINDOW_SECONDS + 1)
            results = await pipe.execute()
        except Exception as exc:
            _log.debug(f"[rate_limit] Redis error ({exc}), skipping rate limit")
            return await call_next(request)

        current_count = results[0]
        if current_count > limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again shortly."},
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(WINDOW_SECONDS),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count))
        response.headers["X-RateLimit-Reset"] = str(((now // WINDOW_SECONDS) + 1) * WINDOW_SECONDS)
        return response
