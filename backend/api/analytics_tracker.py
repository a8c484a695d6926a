"""
Per-session analytics tracker.

An `AnalyticsTracker` is created and owned by its caller (one per chat request
on the server) and forwards events to a sink, normally
``backend.database.core.funcs.record_analytics_event``. It keeps a running
message count for the session; the count is a hint only, the aggregate in the
database is authoritative. Tracking never raises: sink failures are logged.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from backend.api.models import AnalyticsEventIn, EventType

logger = logging.getLogger(__name__)

EventSink = Callable[[AnalyticsEventIn], Any]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalyticsTracker:
    """
    Emit analytics events for one chat session.

    Parameters
    ----------
    sink : callable
        Receives each `AnalyticsEventIn`.
    session_id : str, optional
        Existing session to continue; no ``session_start`` is emitted for it.
    message_count : int
        Messages already exchanged in that session.
    """

    def __init__(self, sink: EventSink, session_id: Optional[str] = None, message_count: int = 0):
        self._sink = sink
        self._session_id = session_id
        self._message_count = message_count

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def message_count(self) -> int:
        return self._message_count

    def init_session(self, session_id: Optional[str] = None) -> str:
        """Start a new session (millisecond timestamp id if none given) and emit ``session_start``."""
        self._session_id = session_id or str(int(time.time() * 1000))
        self._message_count = 0
        self.track_event("session_start", event_data={"timestamp": _timestamp()})
        return self._session_id

    def _ensure_session(self) -> None:
        if not self._session_id:
            self.init_session()

    def track_event(
        self,
        event_type: EventType,
        event_data: Optional[dict] = None,
        quick_action_type: Optional[str] = None,
        message_count: Optional[int] = None,
    ) -> bool:
        """
        Send one event to the sink.

        Returns
        -------
        bool
            False if the event could not be built or recorded.
        """
        try:
            event = AnalyticsEventIn(
                session_id=self._session_id or "",
                event_type=event_type,
                event_data=event_data,
                quick_action_type=quick_action_type,
                message_count=message_count or self._message_count,
            )
            self._sink(event)
        except Exception as e:
            logger.error("Analytics tracking error for %s: %s", event_type, e)
            return False
        return True

    def track_quick_action(self, action_title: str) -> bool:
        self._ensure_session()
        return self.track_event(
            "quick_action_clicked",
            quick_action_type=action_title,
            event_data={"actionTitle": action_title, "timestamp": _timestamp()},
        )

    def track_message_sent(self, message: str) -> bool:
        self._ensure_session()
        self._message_count += 1
        return self.track_event(
            "message_sent",
            message_count=self._message_count,
            event_data={"messageLength": len(message), "timestamp": _timestamp()},
        )

    def track_message_received(self, message: str, has_options: Optional[bool] = None) -> bool:
        self._ensure_session()
        self._message_count += 1
        return self.track_event(
            "message_received",
            message_count=self._message_count,
            event_data={"messageLength": len(message), "hasOptions": has_options, "timestamp": _timestamp()},
        )

    def track_option_click(self, option_text: str) -> bool:
        self._ensure_session()
        return self.track_event("option_clicked", event_data={"optionText": option_text, "timestamp": _timestamp()})

    def track_session_completed(self) -> bool:
        """Emit ``session_completed``; a no-op before any session exists."""
        if not self._session_id:
            return False
        return self.track_event(
            "session_completed",
            message_count=self._message_count,
            event_data={"totalMessages": self._message_count, "timestamp": _timestamp()},
        )

    def reset(self) -> None:
        """Forget the session; the next tracked event starts a new one."""
        self._session_id = None
        self._message_count = 0
