"""
FastAPI application bootstrap with: \n
- Logging configured from settings \n
- Lifespan-managed startup: Redis reachability check, analytics tables, rate limiters \n
- CORS configured for the frontend \n
- Per-IP rate limiting middleware (fails open when Redis is down) \n
- The `/api` router \n

Environment contract (from `settings`): \n
- LOG_LEVEL: root log level. \n
- FRONTEND_URL: allowed CORS origin. \n
- RATE_LIMIT_API / RATE_LIMIT_PAGES / RATE_LIMIT_WINDOW: gate limits. \n
"""

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.api.fast_api import router
from backend.api.rate_limit import SlidingWindowRateLimiter, client_ip, rate_limit_body, rate_limit_headers, should_skip
from backend.cache.redis_client import get_redis, ping
from backend.database.config.config import settings
from backend.database.config.connection_engine import connection_engine, metadata
import backend.database.entities.analytics_event  # noqa: F401  (registers the table)
import backend.database.entities.analytics_summary  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * Create the analytics tables if they do not exist.
        * Check that Redis answers (a failure is logged; the app still starts
          and every Redis-backed feature degrades).
        * Build the `/api` and page rate limiters and attach them to `app.state`.
    - On shutdown (after yielding):
        * Dispose of the database connection pool.
    """
    metadata.create_all(bind=connection_engine)
    client = get_redis()
    if ping(client):
        logger.info("Redis reachable")
    app.state.rate_limiters = {
        "api": SlidingWindowRateLimiter(client, settings.RATE_LIMIT_API, settings.RATE_LIMIT_WINDOW, name="api"),
        "pages": SlidingWindowRateLimiter(client, settings.RATE_LIMIT_PAGES, settings.RATE_LIMIT_WINDOW, name="pages"),
    }
    logger.info("Portal support service started")
    try:
        yield
    finally:
        connection_engine.dispose()
        logger.info("App shutting down")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(title="UHCC Portal Support", lifespan=lifespan)
"""Instantiates a FastAPI application object with the lifespan handler above."""

# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------
# Rate limiting
# -----------------------
@app.middleware("http")
async def rate_limit(request: Request, call_next):
    """
    Sliding-window gate keyed by client IP.

    ``/api/*`` routes use the API limiter, everything else the page limiter;
    static-ish paths are skipped. Rejections are 429 JSON responses with
    ``Retry-After`` and ``X-RateLimit-*`` headers. If Redis cannot be reached
    the request is let through.
    """
    limiters = getattr(request.app.state, "rate_limiters", None)
    path = request.url.path
    if not limiters or should_skip(path):
        return await call_next(request)

    limiter = limiters["api"] if path.startswith("/api/") else limiters["pages"]
    try:
        result = await run_in_threadpool(limiter.hit, client_ip(request))
    except redis.RedisError as e:
        logger.error("Error in rate limiter, allowing request: %s", e)
        return await call_next(request)

    headers = rate_limit_headers(result)
    if not result.success:
        return JSONResponse(status_code=429, content=rate_limit_body(result), headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response


# -----------------------
# API routes
# -----------------------
app.include_router(router)
