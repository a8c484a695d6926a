"""
Response composition for one chat turn.

`ResponseComposer.compose` asks the completion service for the assistant's
reply (falling back to the canned reply of the conversation state), decides
which suggested replies to offer, persists the turn and emits the message
analytics events. Failures of the completion service, of the options call and
of persistence all degrade; none of them fails the turn.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import redis

from backend.api.analytics_tracker import AnalyticsTracker
from backend.api.knowledge_base import canned_response
from backend.api.llm_pipeline import LLM_Pipeline
from backend.api.models import AnalyticsSnapshot, ChatResponse, ReplyOption
from backend.api.prompt_utilities import (
    OPTION_COLORS,
    build_analytics_messages,
    build_chat_messages,
    build_options_prompt,
    build_system_prompt,
)
from backend.api.state_classifier import ConversationInsights, ConversationState
from backend.api.utils import extract_json_object
from backend.cache.conversation_store import ConversationStore
from backend.database.config.config import settings

logger = logging.getLogger(__name__)

MAX_OPTIONS = 3
MAX_OPTION_LENGTH = 50
INSTRUCTION_MARKERS = ("go to", "check your", "click", "enter")
DIFFERENT_EMAIL = "Try different email?"


@dataclass
class SuggestedOptions:
    """Either clickable options or a decision about the free-text input."""
    options: Optional[list[ReplyOption]] = None
    show_input: Optional[bool] = None


def _option(option_id: str, text: str, color: str) -> ReplyOption:
    return ReplyOption(id=option_id, text=text, action=text, color=OPTION_COLORS[color])


def _concerns_email(state: ConversationState) -> bool:
    return "email" in state.value or "validation" in state.value


def fallback_options(state: ConversationState, reply: str) -> SuggestedOptions:
    """Rule-based options keyed off the wording of ``reply``."""
    lowered = reply.lower()

    if ("what happens" in lowered or "what message" in lowered) and _concerns_email(state):
        return SuggestedOptions(options=[
            _option("success", "Got validation error!", "green"),
            _option("fail", "Shows contact form", "red"),
            _option("different", DIFFERENT_EMAIL, "blue"),
        ])

    if "did you find" in lowered or "check your email" in lowered:
        return SuggestedOptions(options=[
            _option("found", "Found it!", "green"),
            _option("not_yet", "Nothing yet", "yellow"),
            _option("spam", "Not in spam either", "red"),
        ])

    if "have you" in lowered or "did you" in lowered:
        return SuggestedOptions(options=[
            _option("yes", "Yes", "green"),
            _option("no", "Not yet", "yellow"),
            _option("tried", "Tried but didn't work", "red"),
        ])

    return SuggestedOptions(show_input=True)


def parse_options(raw: Optional[str], state: ConversationState) -> Optional[list[ReplyOption]]:
    """
    Options from the model's JSON answer, or None if it cannot be used.

    At most three options are kept, texts are cut to 50 characters and the
    action always equals the text. A "Try different email?" option is added
    for email-related states when no option mentions email.
    """
    result = extract_json_object(raw)
    if result.needs_fallback:
        return None
    entries = result.value.get("options")
    if not isinstance(entries, list):
        return None

    options = []
    for index, entry in enumerate(entries[:MAX_OPTIONS], start=1):
        if not isinstance(entry, dict) or not isinstance(entry.get("text"), str) or not entry["text"].strip():
            continue
        text = entry["text"].strip()[:MAX_OPTION_LENGTH]
        options.append(ReplyOption(
            id=str(entry.get("id") or f"option{index}"),
            text=text,
            action=text,
            color=str(entry.get("color") or ""),
        ))
    if not options:
        return None

    if _concerns_email(state) and not any("email" in option.text.lower() for option in options):
        options.append(_option("different_email", DIFFERENT_EMAIL, "blue"))
    return options


class ResponseComposer:
    """
    Compose, persist and track one assistant reply.

    Parameters
    ----------
    llm : LLM_Pipeline
        Completion client (anything with a compatible ``complete``).
    store : ConversationStore
        Where the updated conversation is saved.
    tracker : AnalyticsTracker, optional
        Receives ``message_sent`` / ``message_received``.
    """

    def __init__(self, llm: LLM_Pipeline, store: ConversationStore, tracker: Optional[AnalyticsTracker] = None):
        self.llm = llm
        self.store = store
        self.tracker = tracker

    def suggest_options(self, reply: str, state: ConversationState, history: list[dict]) -> SuggestedOptions:
        if "📞" in reply or "contact:" in reply.lower():
            return SuggestedOptions(show_input=False)

        lowered = reply.lower()
        asks_question = "?" in reply
        gives_instructions = any(marker in lowered for marker in INSTRUCTION_MARKERS)
        if not asks_question and not gives_instructions:
            return SuggestedOptions(show_input=True)

        raw = self.llm.complete(build_options_prompt(reply, state, history))
        options = parse_options(raw, state)
        if options is None:
            logger.warning("Suggested options unusable, using rule-based options (raw: %r)", raw)
            return fallback_options(state, reply)
        return SuggestedOptions(options=options)

    def persist(self, chat_id: Optional[str], messages: list[dict]) -> bool:
        """Save the conversation; store failures are logged and reported as False."""
        if not chat_id:
            logger.warning("No chat id supplied, conversation not persisted")
            return False
        try:
            self.store.save(chat_id, messages)
        except redis.RedisError as e:
            logger.error("Error saving conversation %s: %s", chat_id, e)
            return False
        return True

    def compose(
        self,
        state: ConversationState,
        user_message: str,
        history: list[dict],
        chat_id: Optional[str] = None,
        user_query: Optional[str] = None,
        page_context: Optional[str] = None,
        insights: Optional[ConversationInsights] = None,
    ) -> ChatResponse:
        """
        Produce the reply to ``user_message``.

        Parameters
        ----------
        state : ConversationState
            Resolved state of the conversation including this message.
        user_message : str
            Message as the user sent it; this is what gets persisted.
        history : list[dict]
            Prior messages, oldest first.
        chat_id : str, optional
            Conversation to persist to.
        user_query : str, optional
            Text sent to the model, defaults to ``user_message`` (the chat
            endpoint passes the message with its URL removed).
        page_context : str, optional
            Context phrase of a page the user linked.
        insights : ConversationInsights, optional
            Extra classifier output for the prompt.
        """
        system_prompt = build_system_prompt(state, history, page_context=page_context, insights=insights)
        messages = build_chat_messages(system_prompt, history, user_query if user_query is not None else user_message)

        reply = self.llm.complete(messages)
        if reply is None:
            logger.info("Using canned reply for state %s", state.value)
            reply = canned_response(state)

        suggestion = self.suggest_options(reply, state, history)

        updated = list(history) + [
            {"role": "user", "content": user_message},
            {"role": "assistant", "content": reply},
        ]
        self.persist(chat_id, updated)

        if self.tracker is not None:
            self.tracker.track_message_sent(user_message)
            self.tracker.track_message_received(reply, has_options=bool(suggestion.options))

        return ChatResponse(message=reply, options=suggestion.options, show_input=suggestion.show_input)


def generate_analytics_summary(llm: LLM_Pipeline, snapshot: AnalyticsSnapshot) -> Optional[str]:
    """One paragraph of prose about ``snapshot``, or None if the model is unavailable."""
    return llm.complete(build_analytics_messages(snapshot), model=settings.ANALYTICS_MODEL, temperature=0.7)
