"""
Correlation ID middleware for request tracing.

Generates a UUID4 correlation ID per request (or accepts X-Correlation-ID from client).
Stores it in contextvars so cache and store logs can be tied back to a request.
"""
import contextvars
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from careeros.utils.logger import logger

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("correlation_id", default="")
request_user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_user_id", default="")

# /api/users/{user_id}/...
_USER_PATH = re.compile(r"^/api/users/(\d+)(?:/|$)")


def get_correlation_id() -> str:
    """Get the current request's correlation ID"""
    return correlation_id_var.get("")


def get_request_user_id() -> str:
    """Get the current request's user ID"""
    return request_user_id_var.get("")


def user_id_from_path(path: str) -> str:
    match = _USER_PATH.match(path)
    return match.group(1) if match else ""


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a correlation ID, logs start/completion with
    timing, and echoes the ID back in the X-Correlation-ID response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        path = request.url.path
        user_id = user_id_from_path(path)
        request_user_id_var.set(user_id)

        start = time.monotonic()
        method = request.method

        logger.info(
            "request.started",
            extra={
                "correlation_id": cid,
                "method": method,
                "path": path,
                "user_id": user_id,
                "client_ip": request.client.host if request.client else "",
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.monotonic() - start) * 1000)
            logger.error(
                "request.failed",
                extra={
                    "correlation_id": cid,
                    "method": method,
                    "path": path,
                    "user_id": user_id,
                    "duration_ms": duration_ms,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                }
            )
            raise

        duration_ms = round((time.monotonic() - start) * 1000)
        status = response.status_code

        log_fn = logger.warning if status >= 400 else logger.info
        log_fn(
            "request.completed",
            extra={
                "correlation_id": cid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": duration_ms,
                "user_id": user_id,
            }
        )

        response.headers["X-Correlation-ID"] = cid
        return response
