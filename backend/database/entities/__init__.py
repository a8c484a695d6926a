"""
Entities Package — SQLAlchemy 2.0 ORM Models for usage analytics
================================================================

Tech Stack & Conventions
------------------------
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- Portable column types (`Uuid`, `JSON`) so the same models run on
  PostgreSQL in production and SQLite in tests
- Timezone-aware timestamps (UTC); day buckets are HST calendar dates

Contents
--------
- AnalyticsEvent
    Append-only log of tracked chat events (`analytics` table).

- AnalyticsSummary
    One aggregate row per HST day (`analytics_summaries` table):
    session/message/completion counters, average messages per session and
    quick-action click tallies.
"""
