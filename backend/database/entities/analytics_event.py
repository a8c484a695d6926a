"""
AnalyticsEvent ORM Model
========================

One row per tracked chat event (``analytics`` table). The log is
append-only: rows are inserted by the analytics endpoint and only read
afterwards by the range report.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Client session identifier (``session_id``), indexed
- Event type (``event_type``): ``session_start``, ``message_sent``,
  ``message_received``, ``quick_action_clicked``, ``option_clicked``,
  ``session_completed``
- Free-form JSON payload (``event_data``)
- Quick action title for ``quick_action_clicked`` events
- Timezone-aware ``timestamp`` (UTC)
"""

from backend.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, Integer, JSON, TEXT, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID, uuid4
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsEvent(declarativeBase):
    """
    ORM model for the `analytics` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    session_id : str
        Identifier of the chat session that produced the event.
    event_type : str
        Kind of event.
    event_data : dict | None
        Arbitrary JSON payload sent by the tracker.
    quick_action_type : str | None
        Title of the clicked quick action, if any.
    message_count : int
        Tracker-side running message count at the time of the event.
    timestamp : datetime
        When the event happened (UTC).
    created_at : datetime
        When the row was written (UTC).
    """

    __tablename__ = 'analytics'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    session_id: Mapped[str] = mapped_column(TEXT, nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(TEXT, nullable=False, index=True)
    event_data: Mapped[dict] = mapped_column(JSON, nullable=True)
    quick_action_type: Mapped[str] = mapped_column(TEXT, nullable=True)
    message_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __init__(
        self,
        session_id: str,
        event_type: str,
        timestamp: datetime,
        event_data: dict | None = None,
        quick_action_type: str | None = None,
        message_count: int = 0,
    ):
        self.id = uuid4()
        self.session_id = session_id
        self.event_type = event_type
        self.event_data = event_data
        self.quick_action_type = quick_action_type
        self.message_count = message_count or 0
        self.timestamp = timestamp
        self.created_at = _utcnow()

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys of the analytics API."""
        return {
            "id": str(self.id),
            "sessionId": self.session_id,
            "eventType": self.event_type,
            "eventData": self.event_data,
            "quickActionType": self.quick_action_type,
            "messageCount": self.message_count,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __str__(self) -> str:
        return f"Event: session:{self.session_id}, type: {self.event_type}, at: {self.timestamp}"
