"""
AnalyticsSummary ORM Model
==========================

Rolling per-day aggregate (``analytics_summaries`` table). Exactly one row
exists per HST calendar day, enforced by the unique constraint on ``date``.

Counters are only ever changed through increments issued by
``AnalyticsSummaryDao``; ``avg_messages_per_session`` is recomputed in the
same UPDATE statement that touches the counters.
"""

from backend.database.config.connection_engine import declarativeBase
from sqlalchemy import Date, DateTime, Float, Integer, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID, uuid4
from datetime import date, datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsSummary(declarativeBase):
    """
    ORM model for the `analytics_summaries` table.

    Attributes
    ----------
    summary_date : date
        HST calendar day the row aggregates (unique).
    total_sessions, unique_sessions, total_messages, completed_sessions : int
        Event counters for the day.
    avg_messages_per_session : float
        ``total_messages / total_sessions`` (0 while there are no sessions).
    quick_action_clicks : dict[str, int]
        Click tally per quick action title.
    """

    __tablename__ = 'analytics_summaries'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    summary_date: Mapped[date] = mapped_column("date", Date, nullable=False, unique=True, index=True)
    total_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_messages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_messages_per_session: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quick_action_clicks: Mapped[dict] = mapped_column(JSON, nullable=True)
    unique_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __init__(self, summary_date: date, **counters):
        self.id = uuid4()
        self.summary_date = summary_date
        self.total_sessions = counters.get("total_sessions", 0)
        self.total_messages = counters.get("total_messages", 0)
        self.unique_sessions = counters.get("unique_sessions", 0)
        self.completed_sessions = counters.get("completed_sessions", 0)
        self.avg_messages_per_session = counters.get("avg_messages_per_session", 0.0)
        self.quick_action_clicks = counters.get("quick_action_clicks", {})
        self.created_at = _utcnow()
        self.updated_at = self.created_at

    def to_dict(self) -> dict:
        """Serialize using the camelCase keys of the analytics API."""
        return {
            "id": str(self.id),
            "date": self.summary_date.isoformat(),
            "totalSessions": self.total_sessions,
            "totalMessages": self.total_messages,
            "avgMessagesPerSession": self.avg_messages_per_session,
            "quickActionClicks": dict(self.quick_action_clicks or {}),
            "uniqueSessions": self.unique_sessions,
            "completedSessions": self.completed_sessions,
        }

    def __str__(self) -> str:
        return (
            f"Summary: date:{self.summary_date}, sessions: {self.total_sessions}, "
            f"messages: {self.total_messages}, completed: {self.completed_sessions}"
        )
