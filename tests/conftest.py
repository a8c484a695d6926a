"""Pytest configuration: isolated SQLite analytics store and shared doubles."""

import os
import sys
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment is prepared first.
_db_dir = tempfile.mkdtemp(prefix="portal-support-tests-")
os.environ["DB_DRIVER_NAME"] = "sqlite"
os.environ["DB_DATABASE_NAME"] = str(Path(_db_dir) / "analytics.db")
os.environ["API_KEY"] = "test-key"
os.environ["LOG_LEVEL"] = "WARNING"

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402

from backend.database.config.connection_engine import connection_engine, metadata  # noqa: E402
import backend.database.entities.analytics_event  # noqa: E402,F401
import backend.database.entities.analytics_summary  # noqa: E402,F401
from tests.fixtures import FakeRedis, ScriptedLLM  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def analytics_schema():
    """Create the analytics tables once per run."""
    metadata.create_all(bind=connection_engine)
    yield
    metadata.drop_all(bind=connection_engine)


@pytest.fixture
def clean_db(analytics_schema):
    """Empty every analytics table before the test."""
    with connection_engine.begin() as conn:
        for table in reversed(metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def scripted_llm():
    """An LLM double that answers nothing until given replies."""
    return ScriptedLLM()
