from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from careeros.config import get_settings
from careeros.database import init_db
from careeros.exceptions import (
    CacheInvalidationError,
    NotFoundError,
    StoreTimeoutError,
    UnknownEventError,
    ValidationError,
)
from careeros.middleware.correlation import CorrelationMiddleware
from careeros.middleware.rate_limit import RedisRateLimitMiddleware
from careeros.routes import community, dashboard, progress
from careeros.services.redis_client import close_redis, init_redis, is_redis_healthy
from careeros.utils.logger import logger
from careeros.utils.metrics import get_snapshot

settings = get_settings()

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(RedisRateLimitMiddleware)
app.add_middleware(CorrelationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "X-Correlation-ID"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreTimeoutError)
async def store_timeout_handler(request: Request, exc: StoreTimeoutError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Progress data is temporarily unavailable"})


@app.exception_handler(CacheInvalidationError)
async def cache_invalidation_handler(request: Request, exc: CacheInvalidationError):
    # The write is committed but dependent views could not be invalidated
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Progress saved but the dashboard could not be refreshed"})


@app.exception_handler(UnknownEventError)
async def unknown_event_handler(request: Request, exc: UnknownEventError):
    # Programming error: a mutation emitted an event nobody mapped
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def startup_event():
    logger.info("Starting CareerOS progress backend...")
    await init_db()
    await init_redis()
    logger.info(f"Backend ready at http://{settings.backend_host}:{settings.backend_port}")


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()


@app.get("/health")
async def health_check():
    return {"status": "ok", "redis": await is_redis_healthy()}


@app.get("/metrics")
async def metrics():
    return get_snapshot()


@app.get("/")
async def root():
    return {"status": "ok"}


# Register routes
app.include_router(dashboard.router, prefix="/api/users", tags=["Dashboard"])
app.include_router(progress.router, prefix="/api/users", tags=["Progress"])
app.include_router(community.router, prefix="/api/communities", tags=["Communities"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "careeros.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug
    )
