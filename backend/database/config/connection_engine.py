"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes initialization of the analytics database:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData and the Declarative Base for the analytics tables.

Notes
-----
- Uses `URL.create(...)` so credentials stay environment-driven. For sqlite
  only `database` (the file path) is meaningful; the other parts are None.
- All ORM models inherit from `declarativeBase`; `metadata.create_all` is run
  by the application lifespan.
"""


from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from backend.database.config.config import settings

connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,
    username=settings.DB_USERNAME,
    password=settings.DB_PASSWORD,
    host=settings.DB_HOST,
    database=settings.DB_DATABASE_NAME
)
"""SQLAlchemy connection URL assembled from Settings."""

connect_args = {"check_same_thread": False} if settings.DB_DRIVER_NAME.startswith("sqlite") else {}

connection_engine = create_engine(connection_url, connect_args=connect_args, pool_pre_ping=True)
"""Engine object: manages connections and pooling for the analytics store."""

metadata = MetaData()
"""Schema-level information (tables, constraints, indexes) shared across models."""

declarativeBase = declarative_base(metadata=metadata)
"""Root class for the analytics ORM models."""
