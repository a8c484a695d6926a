"""
Pydantic models used for request/response validation and API data contracts.

The JSON contract of the chat UI uses camelCase keys (``chatId``,
``showInput``, ``quickActionType`` ...). Models declare snake_case fields
with camelCase aliases and accept either spelling on input.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that (de)serializes with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImageRef(CamelModel):
    """Illustrative screenshot attached to an assistant message."""
    src: str = Field(..., description="Image URL or static path.", examples=["/images/new-user-section.png"])
    alt: str = Field("", description="Alternative text.")


class ReplyOption(CamelModel):
    """A short suggested reply the user can click instead of typing."""
    id: str
    """Stable identifier of the option."""
    text: str
    """Label shown on the button (≤ 50 chars)."""
    action: str
    """Message sent when the option is clicked (same as ``text``)."""
    color: str = ""
    """Presentation hint (CSS classes) for the UI."""


class ConversationMessage(CamelModel):
    """
    One entry of a conversation history.
    """
    role: Literal["user", "assistant"]
    """Who wrote the message."""
    content: str
    """Message text (assistant messages may contain simple HTML links)."""
    attached_image: Optional[ImageRef] = None
    """Optional screenshot shown with the message."""
    options_offered: Optional[List[ReplyOption]] = None
    """Suggested replies that were offered with the message."""


class ChatRequest(CamelModel):
    """
    Body of ``POST /api/chat``.
    """
    message: str = ""
    """The message the user just sent (may contain a URL)."""
    messages: List[ConversationMessage] = Field(default_factory=list)
    """Conversation history before this message."""
    chat_id: Optional[str] = None
    """Conversation identifier used for persistence."""


class ChatResponse(CamelModel):
    """
    Body returned by ``POST /api/chat``.
    """
    message: str
    """Composed assistant reply."""
    options: Optional[List[ReplyOption]] = None
    """Suggested replies, when the UI should show buttons."""
    show_input: Optional[bool] = None
    """Whether the free-text input should be shown."""
    image: Optional[ImageRef] = None
    """Optional screenshot for the reply."""


class ChatHistoryResponse(CamelModel):
    """Body returned by ``GET /api/chat``."""
    messages: Optional[List[dict]] = None


EventType = Literal[
    "session_start",
    "message_sent",
    "message_received",
    "quick_action_clicked",
    "option_clicked",
    "session_completed",
]


class AnalyticsEventIn(CamelModel):
    """
    Body of ``POST /api/analytics``: one tracked event.
    """
    session_id: str
    """Client session identifier."""
    event_type: EventType
    """Kind of event."""
    event_data: Optional[dict[str, Any]] = None
    """Free-form payload (message length, timestamps ...)."""
    quick_action_type: Optional[str] = None
    """Quick action title, for ``quick_action_clicked``."""
    message_count: Optional[int] = 0
    """Tracker-side running message count."""


class AnalyticsSummaryStats(CamelModel):
    """Aggregated numbers of an analytics report."""
    total_sessions: int = 0
    unique_sessions: int = 0
    total_messages: int = 0
    avg_messages_per_session: float = 0.0
    completed_sessions: int = 0
    completion_rate: float = 0.0


class DateRange(CamelModel):
    start: str
    end: str


class AnalyticsSnapshot(CamelModel):
    """
    Body of ``POST /api/analytics/summary``: a report snapshot (as returned
    by ``GET /api/analytics``) to be turned into one paragraph of prose.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    date_range: DateRange
    summary: AnalyticsSummaryStats
    quick_actions: dict[str, int] = Field(default_factory=dict)
    event_types: dict[str, int] = Field(default_factory=dict)
    filter: Optional[str] = None


class SeedRequest(BaseModel):
    """Body of ``POST /api/analytics/test``."""
    days: int = Field(7, ge=1, le=366)


class QuickAction(BaseModel):
    """A predefined starter message offered on the home screen."""
    title: str
    description: str
    action: str


class RateLimitResult(BaseModel):
    """Outcome of one rate-limit check."""
    success: bool
    limit: int
    remaining: int
    reset: int
    """Epoch milliseconds when the oldest request in the window expires."""
    checked_at: datetime
