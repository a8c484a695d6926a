"""
Per-IP sliding-window rate limiting on Redis.

Each identifier owns a sorted set ``ratelimit:<name>:<identifier>`` whose
members are request timestamps (ms). A request is admitted when, after
dropping members older than the window, at most ``limit`` members remain.
Redis errors propagate; the HTTP middleware lets requests through when the
store is down.
"""

import logging
import math
import time
import uuid
from datetime import datetime, timezone

import redis
from starlette.requests import Request

from backend.api.models import RateLimitResult

logger = logging.getLogger(__name__)

SKIP_PATHS = (
    "/favicon.ico",
    "/robots.txt",
    "/sitemap.xml",
    "/images",
    "/docs",
    "/openapi.json",
)
RATE_LIMIT_MESSAGE = "You're sending messages too quickly. Please wait a moment before trying again."


def should_skip(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in SKIP_PATHS)


def client_ip(request: Request) -> str:
    """Best guess of the caller's address behind common proxies."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value.strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


class SlidingWindowRateLimiter:
    """
    Admit at most ``limit`` requests per ``window`` seconds per identifier.

    Parameters
    ----------
    client : redis.Redis
        Store holding the windows.
    limit : int
        Requests allowed per window.
    window : int
        Window length in seconds.
    name : str
        Key namespace, so several limiters can share one store.
    """

    def __init__(self, client: redis.Redis, limit: int, window: int, name: str = "default"):
        self.client = client
        self.limit = limit
        self.window_ms = window * 1000
        self.name = name

    def key(self, identifier: str) -> str:
        return f"ratelimit:{self.name}:{identifier}"

    def hit(self, identifier: str, now_ms: int | None = None) -> RateLimitResult:
        """
        Count one request for ``identifier``.

        Raises
        ------
        redis.RedisError
            If the store cannot be reached.
        """
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        key = self.key(identifier)
        member = f"{now_ms}-{uuid.uuid4().hex}"

        pipe = self.client.pipeline()
        pipe.zremrangebyscore(key, 0, now_ms - self.window_ms)
        pipe.zadd(key, {member: now_ms})
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        pipe.pexpire(key, self.window_ms)
        _, _, count, oldest, _ = pipe.execute()

        success = count <= self.limit
        if not success:
            # rejected requests do not occupy the window
            self.client.zrem(key, member)
            count -= 1

        oldest_ms = int(oldest[0][1]) if oldest else now_ms
        result = RateLimitResult(
            success=success,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset=oldest_ms + self.window_ms,
            checked_at=datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc),
        )
        if not success:
            logger.warning("Rate limit exceeded for %s on %s", identifier, self.name)
        return result


def seconds_until(reset_ms: int, now_ms: int | None = None) -> int:
    """Whole seconds (rounded up, at least 0) until ``reset_ms``."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return max(0, math.ceil((reset_ms - now_ms) / 1000))


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }
    if not result.success:
        headers["Retry-After"] = str(seconds_until(result.reset))
    return headers


def rate_limit_body(result: RateLimitResult) -> dict:
    wait = seconds_until(result.reset)
    return {
        "error": "Rate limit exceeded",
        "message": RATE_LIMIT_MESSAGE,
        "reset": result.reset,
        "timeRemaining": wait,
        "retryAfter": wait,
    }
