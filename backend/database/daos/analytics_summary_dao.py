"""
Analytics Summary DAO

Purpose
-------
Data-access layer for the per-day `AnalyticsSummary` aggregate:
- Get-or-create the row for a day (idempotent under concurrent creators)
- Increment counters and recompute the average in one UPDATE
- Increment one quick-action tally under a row lock
- Range / status queries for reporting

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller.
- Counter changes never read-modify-write a cached value: the UPDATE uses
  ``column = column + n`` and the right-hand side of the average refers to
  the pre-update column values, so counters and average move together.
- Concurrent creation of the same day row is resolved by the unique
  constraint on ``date``: the loser of the race rolls back its savepoint and
  re-reads the winner's row.

Error Handling
--------------
- Methods log the failure with context and re-raise.
"""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import Float, asc, case, cast, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.database.entities.analytics_summary import AnalyticsSummary

logger = logging.getLogger(__name__)


class AnalyticsSummaryDao:
    """
    Data Access Object (DAO) for `AnalyticsSummary` rows.
    """

    def fetchSummaryByDate(self, session: Session, summary_date: date) -> AnalyticsSummary | None:
        try:
            return session.scalar(
                select(AnalyticsSummary).where(AnalyticsSummary.summary_date == summary_date)
            )
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.fetchSummaryByDate. Error: %s", e)
            raise e

    def getOrCreateSummary(self, session: Session, summary_date: date) -> AnalyticsSummary:
        """
        Return the aggregate row for ``summary_date``, creating an empty one
        if none exists yet.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        summary_date : date
            HST calendar day.

        Returns
        -------
        AnalyticsSummary
            The single row for that day.
        """
        summary = self.fetchSummaryByDate(session, summary_date)
        if summary is not None:
            return summary

        logger.info("Creating new summary for date: %s", summary_date.isoformat())
        try:
            with session.begin_nested():
                summary = AnalyticsSummary(summary_date)
                session.add(summary)
            return summary
        except IntegrityError:
            # Another writer created the row between our read and insert.
            logger.info("Summary for %s created concurrently, reusing it", summary_date.isoformat())
            summary = self.fetchSummaryByDate(session, summary_date)
            if summary is None:
                raise
            return summary

    def incrementCounters(
        self,
        session: Session,
        summary_date: date,
        sessions: int = 0,
        unique_sessions: int = 0,
        messages: int = 0,
        completed: int = 0,
    ) -> None:
        """
        Atomically add to the day's counters.

        ``avg_messages_per_session`` is recomputed in the same statement when
        sessions or messages change and there is at least one session.
        """
        try:
            new_sessions = AnalyticsSummary.total_sessions + sessions
            new_messages = AnalyticsSummary.total_messages + messages
            values = {
                "total_sessions": new_sessions,
                "unique_sessions": AnalyticsSummary.unique_sessions + unique_sessions,
                "total_messages": new_messages,
                "completed_sessions": AnalyticsSummary.completed_sessions + completed,
                "updated_at": datetime.now(timezone.utc),
            }
            if sessions or messages:
                values["avg_messages_per_session"] = case(
                    (new_sessions > 0, cast(new_messages, Float) / new_sessions),
                    else_=AnalyticsSummary.avg_messages_per_session,
                )
            session.execute(
                update(AnalyticsSummary)
                .where(AnalyticsSummary.summary_date == summary_date)
                .values(**values),
                execution_options={"synchronize_session": "fetch"},
            )
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.incrementCounters. Error: %s", e)
            raise e

    def incrementQuickAction(self, session: Session, summary_date: date, quick_action_type: str) -> None:
        """
        Add one click to ``quick_action_type`` in the day's tally, leaving
        other keys untouched. The row is locked for the read-modify-write
        (no-op on SQLite, which serializes writers anyway).
        """
        try:
            summary = session.scalar(
                select(AnalyticsSummary)
                .where(AnalyticsSummary.summary_date == summary_date)
                .with_for_update()
            )
            clicks = dict(summary.quick_action_clicks or {})
            clicks[quick_action_type] = clicks.get(quick_action_type, 0) + 1
            # new dict so the JSON column is flagged dirty
            summary.quick_action_clicks = clicks
            session.flush()
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.incrementQuickAction. Error: %s", e)
            raise e

    def fetchSummariesBetween(self, session: Session, start_date: date, end_date: date) -> list[AnalyticsSummary]:
        """Fetch the day rows in ``[start_date, end_date]``, oldest first."""
        try:
            return list(
                session.scalars(
                    select(AnalyticsSummary)
                    .where(AnalyticsSummary.summary_date >= start_date)
                    .where(AnalyticsSummary.summary_date <= end_date)
                    .order_by(asc(AnalyticsSummary.summary_date))
                )
            )
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.fetchSummariesBetween. Error: %s", e)
            raise e

    def countSummaries(self, session: Session) -> int:
        try:
            return session.scalar(select(func.count()).select_from(AnalyticsSummary)) or 0
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.countSummaries. Error: %s", e)
            raise e

    def fetchEarliestSummary(self, session: Session) -> AnalyticsSummary | None:
        try:
            return session.scalar(select(AnalyticsSummary).order_by(asc(AnalyticsSummary.summary_date)).limit(1))
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.fetchEarliestSummary. Error: %s", e)
            raise e

    def fetchLatestSummary(self, session: Session) -> AnalyticsSummary | None:
        try:
            return session.scalar(select(AnalyticsSummary).order_by(desc(AnalyticsSummary.summary_date)).limit(1))
        except Exception as e:
            logger.error("Error in AnalyticsSummaryDao.fetchLatestSummary. Error: %s", e)
            raise e
