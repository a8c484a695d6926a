"""
DAOs Package — Data Access Layer for usage analytics (SQLAlchemy 2.0)
=====================================================================

Conventions
-----------
- Session lifecycle (open/commit/rollback) is handled by callers
  (`@transactional` service functions in `backend.database.core.funcs`)
- DAOs log and surface exceptions so upper layers decide error policy

Contents
--------
- AnalyticsEventDao
    * createEvent(session, event): stages an event row
    * fetchEventsBetween(session, start, end): events in a UTC window
    * countEvents(session)

- AnalyticsSummaryDao
    * getOrCreateSummary(session, day): one row per HST day
    * incrementCounters(session, day, ...): atomic counter + average update
    * incrementQuickAction(session, day, title): locked tally update
    * fetchSummariesBetween / countSummaries / fetchEarliestSummary / fetchLatestSummary
"""
