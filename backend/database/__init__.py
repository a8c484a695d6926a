"""
The `database` package holds the relational analytics store: the append-only
event log and one aggregate row per HST calendar day.

Contents:
    - config:
        Settings (shared by the whole service) and the SQLAlchemy engine.

    - entities:
        `AnalyticsEvent` (table ``analytics``) and `AnalyticsSummary`
        (table ``analytics_summaries``, unique ``date``).

    - daos:
        Data Access Objects; counter updates are single atomic UPDATE
        statements.

    - core:
        Service functions used by the router (event recording, range
        reports, data status, seeding) and the HST date-range helpers.

    - helpers:
        The ``@transactional`` session/transaction decorator.
"""
