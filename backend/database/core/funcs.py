"""
Service-layer operations for usage analytics.

All functions are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each function accepts (and
uses) an injected `session: Session` provided by the decorator; callers pass
every other argument by keyword.

Operations
----------
- record_analytics_event : append an event and update the day's aggregate
- get_analytics_report   : aggregate a filter/period window (HST)
- get_analytics_status   : counts and date span of stored data
- seed_test_data         : fill recent days with random aggregates (dev only)
"""

import logging
import random
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from backend.api.knowledge_base import QUICK_ACTIONS
from backend.api.models import AnalyticsEventIn
from backend.database.core.date_ranges import HST_TIMEZONE, date_range, format_hst, hst_date, now_hst
from backend.database.daos.analytics_event_dao import AnalyticsEventDao
from backend.database.daos.analytics_summary_dao import AnalyticsSummaryDao
from backend.database.entities.analytics_event import AnalyticsEvent
from backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


@transactional
def record_analytics_event(session: Session, event: AnalyticsEventIn, now: datetime | None = None) -> dict:
    """
    Record one analytics event and fold it into the daily aggregate.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    event : AnalyticsEventIn
        Validated event payload.
    now : datetime, optional
        Event instant (UTC); defaults to the current time.

    Returns
    -------
    dict
        The stored event, serialized with camelCase keys.

    Notes
    -----
    - The aggregate row is keyed by the HST calendar day of ``now``.
    - ``session_start`` → totalSessions +1 and uniqueSessions +1
    - ``message_sent`` / ``message_received`` → totalMessages +1
    - ``quick_action_clicked`` with a title → that title's click count +1
    - ``session_completed`` → completedSessions +1
    - ``option_clicked`` is logged only.
    """
    event_dao = AnalyticsEventDao()
    summary_dao = AnalyticsSummaryDao()
    now = now or datetime.now(timezone.utc)
    day = hst_date(now)

    logger.info(
        "Recording analytics event %s for session %s (HST day %s)",
        event.event_type, event.session_id, day.isoformat(),
    )

    row = AnalyticsEvent(
        session_id=event.session_id,
        event_type=event.event_type,
        timestamp=now,
        event_data=event.event_data,
        quick_action_type=event.quick_action_type,
        message_count=event.message_count or 0,
    )
    event_dao.createEvent(session, row)
    summary_dao.getOrCreateSummary(session, day)

    if event.event_type == "session_start":
        summary_dao.incrementCounters(session, day, sessions=1, unique_sessions=1)
    elif event.event_type in ("message_sent", "message_received"):
        summary_dao.incrementCounters(session, day, messages=1)
    elif event.event_type == "quick_action_clicked" and event.quick_action_type:
        summary_dao.incrementQuickAction(session, day, event.quick_action_type)
    elif event.event_type == "session_completed":
        summary_dao.incrementCounters(session, day, completed=1)

    return row.to_dict()


@transactional
def get_analytics_report(
    session: Session,
    filter: str = "day",
    period: str = "current",
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Aggregate the analytics of one HST window.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    filter, period, start_date, end_date
        Window selection, see `date_ranges.date_range`.
    now : datetime, optional
        Reference instant; defaults to the current time.

    Returns
    -------
    dict
        ``dateRange``, ``summary`` (totals, distinct sessions, average and
        completion rate rounded to one decimal), ``quickActions``,
        ``eventTypes``, ``dailySummaries``, ``rawDataCount``, ``timezone``,
        ``currentTimeHST``.

    Raises
    ------
    ValueError
        If custom bounds are invalid.
    """
    event_dao = AnalyticsEventDao()
    summary_dao = AnalyticsSummaryDao()
    current = now_hst(now)
    start_hst, end_hst = date_range(filter, period, now=current, start_date=start_date, end_date=end_date)
    start_utc = start_hst.astimezone(timezone.utc)
    end_utc = end_hst.astimezone(timezone.utc)

    logger.debug("Analytics query filter=%s period=%s window=%s..%s", filter, period, format_hst(start_hst), format_hst(end_hst))

    summaries = summary_dao.fetchSummariesBetween(session, start_hst.date(), end_hst.date())
    events = event_dao.fetchEventsBetween(session, start_utc, end_utc)
    logger.info("Found %d summaries and %d events", len(summaries), len(events))

    total_sessions = sum(s.total_sessions for s in summaries)
    total_messages = sum(s.total_messages for s in summaries)
    completed_sessions = sum(s.completed_sessions for s in summaries)
    avg_messages = total_messages / total_sessions if total_sessions > 0 else 0
    completion_rate = completed_sessions / total_sessions * 100 if total_sessions > 0 else 0

    quick_actions: dict[str, int] = {}
    for summary in summaries:
        for action, count in (summary.quick_action_clicks or {}).items():
            quick_actions[action] = quick_actions.get(action, 0) + int(count)

    event_types: dict[str, int] = {}
    for event in events:
        event_types[event.event_type] = event_types.get(event.event_type, 0) + 1

    return {
        "dateRange": {"start": start_utc.isoformat(), "end": end_utc.isoformat()},
        "summary": {
            "totalSessions": total_sessions,
            "uniqueSessions": len({event.session_id for event in events}),
            "totalMessages": total_messages,
            "avgMessagesPerSession": round(avg_messages, 1),
            "completedSessions": completed_sessions,
            "completionRate": round(completion_rate, 1),
        },
        "quickActions": quick_actions,
        "eventTypes": event_types,
        "dailySummaries": [summary.to_dict() for summary in summaries],
        "rawDataCount": len(events),
        "timezone": HST_TIMEZONE,
        "currentTimeHST": format_hst(current),
    }


@transactional
def get_analytics_status(session: Session) -> dict:
    """Report how much analytics data exists and which days it spans."""
    event_dao = AnalyticsEventDao()
    summary_dao = AnalyticsSummaryDao()
    earliest = summary_dao.fetchEarliestSummary(session)
    latest = summary_dao.fetchLatestSummary(session)
    return {
        "status": "Current data status",
        "summaries": {
            "count": summary_dao.countSummaries(session),
            "earliest": earliest.summary_date.isoformat() if earliest else None,
            "latest": latest.summary_date.isoformat() if latest else None,
        },
        "events": {"count": event_dao.countEvents(session)},
    }


SEED_QUICK_ACTIONS = tuple(action.title for action in QUICK_ACTIONS)


@transactional
def seed_test_data(session: Session, days: int = 7, now: datetime | None = None, rng: random.Random | None = None) -> list[dict]:
    """
    Overwrite the aggregates of the last ``days`` HST days with random
    development data. Events are not generated.
    """
    summary_dao = AnalyticsSummaryDao()
    rng = rng or random.Random()
    today = hst_date(now)
    seeded = []

    logger.info("Creating test data for the last %d days", days)
    for offset in range(days):
        day = today - timedelta(days=offset)
        sessions = rng.randint(5, 24)
        messages = sessions * rng.randint(3, 12)
        completed = int(sessions * (rng.random() * 0.5 + 0.3))

        summary = summary_dao.getOrCreateSummary(session, day)
        summary.total_sessions = sessions
        summary.unique_sessions = sessions
        summary.total_messages = messages
        summary.completed_sessions = completed
        summary.avg_messages_per_session = messages / sessions
        summary.quick_action_clicks = {title: rng.randint(0, 9) for title in SEED_QUICK_ACTIONS}
        session.flush()
        seeded.append(summary.to_dict())

    return seeded
