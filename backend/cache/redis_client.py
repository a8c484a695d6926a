"""
Redis connection factory shared by the conversation store, the page cache
and the rate limiter.

One client (with its own connection pool) is created per process on first
use. Values are stored as UTF-8 JSON strings, so responses are decoded.
"""

import logging
from functools import lru_cache

import redis

from backend.database.config.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    """Return the process-wide Redis client built from ``settings.REDIS_URL``."""
    kwargs = {"decode_responses": True, "socket_timeout": 5, "socket_connect_timeout": 5}
    if settings.REDIS_TOKEN:
        kwargs["password"] = settings.REDIS_TOKEN
    client = redis.Redis.from_url(settings.REDIS_URL, **kwargs)
    logger.info("Redis client configured for %s", settings.REDIS_URL.split("@")[-1])
    return client


def ping(client: redis.Redis) -> bool:
    """True if the store answers; failures are logged, not raised."""
    try:
        return bool(client.ping())
    except redis.RedisError as e:
        logger.error("Redis is unreachable: %s", e)
        return False
