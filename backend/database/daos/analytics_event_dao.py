"""
Analytics Event DAO

Purpose
-------
Thin data-access layer for the append-only `AnalyticsEvent` log:
- Insert an event
- Read events inside a UTC time window (for range reports)
- Count all events (for the data-status endpoint)

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller; the
  service layer (`@transactional`) owns transaction boundaries.

Error Handling
--------------
- Methods log the failure with context and re-raise.
"""

import logging
from datetime import datetime

from sqlalchemy import asc, func, select
from sqlalchemy.orm import Session

from backend.database.entities.analytics_event import AnalyticsEvent

logger = logging.getLogger(__name__)


class AnalyticsEventDao:
    """
    Data Access Object (DAO) for `AnalyticsEvent` rows.
    """

    def createEvent(self, session: Session, event: AnalyticsEvent) -> AnalyticsEvent:
        """
        Stage a new event row.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        event : AnalyticsEvent
            Event to insert.
        """
        try:
            session.add(event)
            session.flush()
            return event
        except Exception as e:
            logger.error("Error in AnalyticsEventDao.createEvent. Error: %s", e)
            raise e

    def fetchEventsBetween(self, session: Session, start: datetime, end: datetime) -> list[AnalyticsEvent]:
        """
        Fetch events whose timestamp lies in ``[start, end]``, oldest first.
        """
        try:
            return list(
                session.scalars(
                    select(AnalyticsEvent)
                    .where(AnalyticsEvent.timestamp >= start)
                    .where(AnalyticsEvent.timestamp <= end)
                    .order_by(asc(AnalyticsEvent.timestamp))
                )
            )
        except Exception as e:
            logger.error("Error in AnalyticsEventDao.fetchEventsBetween. Error: %s", e)
            raise e

    def countEvents(self, session: Session) -> int:
        try:
            return session.scalar(select(func.count()).select_from(AnalyticsEvent)) or 0
        except Exception as e:
            logger.error("Error in AnalyticsEventDao.countEvents. Error: %s", e)
            raise e
