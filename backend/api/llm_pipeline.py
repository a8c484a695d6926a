"""
LLM Completion Client
=====================

Purpose
-------
Thin wrapper over LangChain's ``ChatOpenAI`` pointed at any OpenAI-compatible
endpoint (Groq by default). It is the only place that talks to the language
model; everything else hands it a list of ``{"role", "content"}`` dicts.

Contract
--------
- ``complete(messages)`` returns the stripped reply text, or ``None`` if the
  call fails for any reason or the model answers with nothing. It never
  raises: callers treat ``None`` as "use the fallback".

Configuration (settings)
------------------------
- settings.API_KEY        : key for the completion endpoint.
- settings.OPEN_AI_MODEL  : default chat model.
- settings.LLM_BASE_URL   : OpenAI-compatible base URL.
- settings.LLM_TIMEOUT    : request timeout in seconds.
"""

import logging
from typing import Optional

from langchain_openai import ChatOpenAI

from backend.api.prompt_utilities import to_langchain_messages
from backend.database.config.config import settings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7


class LLM_Pipeline():
    """
    Completion client with one ``ChatOpenAI`` instance per (model, temperature).

    Args:
        model (str, optional): Default model name (``settings.OPEN_AI_MODEL``).
        api_key (str, optional): Endpoint key (``settings.API_KEY``).
        base_url (str, optional): Endpoint URL (``settings.LLM_BASE_URL``).
        timeout (float, optional): Request timeout (``settings.LLM_TIMEOUT``).
    """
    def __init__(self, model: str | None = None, api_key: str | None = None, base_url: str | None = None, timeout: float | None = None):
        self.default_model = model or settings.OPEN_AI_MODEL
        self.api_key = api_key if api_key is not None else settings.API_KEY
        self.base_url = base_url or settings.LLM_BASE_URL
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT
        self._models: dict[tuple[str, float], ChatOpenAI] = {}

    def chat_model(self, model: str | None = None, temperature: float = DEFAULT_TEMPERATURE) -> ChatOpenAI:
        """Return (and memoize) the LangChain chat model for ``model`` / ``temperature``."""
        key = (model or self.default_model, temperature)
        if key not in self._models:
            self._models[key] = ChatOpenAI(
                model=key[0],
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                temperature=temperature,
                max_retries=1,
            )
        return self._models[key]

    def complete(self, messages: list[dict], model: str | None = None, temperature: float = DEFAULT_TEMPERATURE) -> Optional[str]:
        """
        Run one chat completion.

        Args:
            messages (list[dict]): Ordered ``{"role", "content"}`` dicts; roles
                are ``system``, ``user`` or ``assistant``.
            model (str, optional): Override of the default model.
            temperature (float): Sampling temperature.

        Returns:
            str | None: Reply text, or None on failure / empty output.
        """
        model_name = model or self.default_model
        logger.info("Requesting completion from %s (%d messages)", model_name, len(messages))
        try:
            response = self.chat_model(model_name, temperature).invoke(to_langchain_messages(messages))
        except Exception as e:
            logger.error("Completion request to %s failed: %s", model_name, e)
            return None

        content = str(response.content or "").strip()
        if not content:
            logger.warning("Completion from %s was empty", model_name)
            return None
        return content
