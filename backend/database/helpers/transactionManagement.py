"""
Database Transaction Management
===============================

Session handling for the analytics store. A context variable carries the
active SQLAlchemy session so nested service calls share one transaction,
and the ``@transactional`` decorator opens, commits, rolls back and closes
sessions around the outermost call.

Key features
~~~~~~~~~~~~
- Implicit reuse of an already active session
- Commit on success, rollback (and re-raise) on failure
- Session closed and context cleared after the outermost call
"""

import contextvars
import logging
from functools import wraps

from sqlalchemy.orm import sessionmaker

from backend.database.config.connection_engine import connection_engine

logger = logging.getLogger(__name__)

SessionFactory = sessionmaker(bind=connection_engine, expire_on_commit=False)
"""Factory for analytics sessions; objects stay readable after commit."""

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def transactional(func):
    """
    Run ``func`` inside a managed analytics transaction.

    The wrapped function must accept a ``session`` keyword argument. If a
    session is already active in this context it is reused and the outer
    caller owns commit/rollback.

    Example
    -------
    >>> @transactional
    ... def count_events(session=None):
    ...     return session.query(AnalyticsEvent).count()
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session is not None:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)
        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            logger.exception("Transaction in %s failed, rolling back", func.__name__)
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
