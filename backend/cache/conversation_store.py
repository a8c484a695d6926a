"""
Conversation persistence in Redis.

Each conversation is one key, ``conversation:<id>``, holding the complete
message list as JSON. Every save overwrites the list and resets the TTL to
the full retention window, so only abandoned conversations expire.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)

CONVERSATION_TTL = 60 * 60 * 24 * 7
"""Retention window (seconds) of an idle conversation."""


def conversation_key(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


class ConversationStore:
    """
    Save and load whole message lists per conversation id.

    The store does not validate message shape beyond JSON decoding; callers
    check what they load.
    """

    def __init__(self, client: redis.Redis, ttl: int = CONVERSATION_TTL):
        self.client = client
        self.ttl = ttl

    def save(self, conversation_id: str, messages: list[dict]) -> None:
        """
        Replace the stored messages of ``conversation_id``.

        Raises
        ------
        redis.RedisError
            If the store is unreachable; the caller decides whether the turn
            can continue without persistence.
        """
        logger.info("Saving conversation with ID: %s", conversation_id)
        self.client.set(conversation_key(conversation_id), json.dumps(messages), ex=self.ttl)
        logger.info(
            "Saved conversation %s with %d messages (TTL: %d seconds)",
            conversation_id, len(messages), self.ttl,
        )

    def load(self, conversation_id: str):
        """
        Return the stored message list, or None if there is none or it
        cannot be read.
        """
        try:
            data = self.client.get(conversation_key(conversation_id))
        except redis.RedisError as e:
            logger.error("Error retrieving conversation with ID %s: %s", conversation_id, e)
            return None

        if not data:
            logger.info("No conversation found for ID: %s", conversation_id)
            return None

        try:
            messages = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error("Stored conversation %s is not valid JSON: %s", conversation_id, e)
            return None

        logger.info("Retrieved conversation %s", conversation_id)
        return messages
