"""
The `helpers` package provides transaction handling for the analytics store.

Contents
--------
- transactionManagement
    - `db_session_context`: propagates the active session across calls
    - `@transactional`: reuses an active session or creates, commits and
      closes a new one, rolling back on errors
"""
