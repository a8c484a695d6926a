"""
The `cache` package holds everything stored in the key-value store (Redis).

Contents
--------
- redis_client
    Process-wide Redis client built from settings.
- content_cache
    `ContentCache` / `ScrapedPage`: extracted page text under
    ``scrape:<url prefix>`` with a 7-day TTL and a payload size cap.
- conversation_store
    `ConversationStore`: full message list per conversation under
    ``conversation:<id>``, TTL refreshed on every save.
"""
