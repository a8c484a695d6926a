"""
Page content cache.

Maps a URL to the text previously extracted from it (``ScrapedPage``).

Layout
------
- key: ``scrape:<first 200 chars of the URL>``
- value: the page serialized as camelCase JSON, with ``cachedAt`` (epoch ms)
- TTL: 7 days; entries larger than 1,024,000 bytes are never stored

Corrupt entries (undecodable JSON or missing/mistyped fields) are deleted on
read and reported as a miss. Store errors are logged and treated as a miss
(on read) or a no-op (on write); they never reach the caller.
"""

import json
import logging
import time
from typing import Optional

import redis
from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

CACHE_TTL = 7 * 24 * 60 * 60
"""Seconds a cached page stays valid."""
MAX_CACHE_SIZE = 1024000
"""Largest serialized entry (bytes) accepted by the cache."""
MAX_KEY_URL_LENGTH = 200
CACHE_KEY_PREFIX = "scrape:"


class PageHeadings(BaseModel):
    h1: StrictStr
    h2: StrictStr


class ScrapedPage(BaseModel):
    """
    Text extracted from one web page.

    All fields are required so that a structurally incomplete cache entry
    fails validation; ``error`` is ``None`` on success and a message on
    failure.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: StrictStr
    title: StrictStr
    headings: PageHeadings
    meta_description: StrictStr
    content: StrictStr
    error: Optional[StrictStr]
    cached_at: Optional[StrictInt] = None

    @classmethod
    def failed(cls, url: str, error: str) -> "ScrapedPage":
        """Empty record signalling a failed retrieval."""
        return cls(
            url=url,
            title="",
            headings=PageHeadings(h1="", h2=""),
            meta_description="",
            content="",
            error=error,
        )


def cache_key(url: str) -> str:
    """Cache key for ``url``; long URLs share a key with their 200-char prefix."""
    return f"{CACHE_KEY_PREFIX}{url[:MAX_KEY_URL_LENGTH]}"


class ContentCache:
    """
    Redis-backed cache of extracted page text.

    Usage:
        cache = ContentCache(get_redis())
        page = cache.get(url)
        if page is None:
            page = ...extract...
            cache.put(url, page)
    """

    def __init__(self, client: redis.Redis, ttl: int = CACHE_TTL, max_size: int = MAX_CACHE_SIZE):
        self.client = client
        self.ttl = ttl
        self.max_size = max_size

    def get(self, url: str) -> ScrapedPage | None:
        """
        Return the cached page for ``url`` or None on a miss.

        Undecodable or structurally invalid entries are purged and reported
        as a miss.
        """
        key = cache_key(url)
        try:
            cached = self.client.get(key)
        except redis.RedisError as e:
            logger.error("Cache retrieval error for %s: %s", url, e)
            return None

        if not cached:
            logger.info("Cache miss - no cached content found for: %s", url)
            return None

        try:
            data = json.loads(cached)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error("JSON parse error for cached content of %s: %s", url, e)
            self._purge(key)
            return None

        try:
            page = ScrapedPage.model_validate(data)
        except ValidationError:
            logger.warning("Invalid cached content found for URL: %s", url)
            self._purge(key)
            return None

        age_minutes = round((time.time() * 1000 - (page.cached_at or 0)) / 1000 / 60)
        logger.info("Cache hit for %s (age: %d minutes)", url, age_minutes)
        return page

    def put(self, url: str, page: ScrapedPage) -> bool:
        """
        Store ``page`` under ``url`` with the cache TTL, replacing any
        existing entry. Returns False (and stores nothing) if the serialized
        page exceeds the size cap or the store fails.
        """
        key = cache_key(url)
        stamped = page.model_copy(update={"cached_at": int(time.time() * 1000)})
        serialized = stamped.model_dump_json(by_alias=True)
        size = len(serialized.encode("utf-8"))

        if size > self.max_size:
            logger.warning("Content too large to cache for URL: %s (%d bytes)", url, size)
            return False

        try:
            self.client.set(key, serialized, ex=self.ttl)
        except redis.RedisError as e:
            logger.error("Cache storage error for %s: %s", url, e)
            return False

        logger.info("Cached content for %s (%d bytes, TTL: %d seconds)", url, size, self.ttl)
        return True

    def _purge(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.error("Could not delete corrupt cache entry %s: %s", key, e)
