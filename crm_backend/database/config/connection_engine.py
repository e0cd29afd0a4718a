"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.

Notes
-----
- Uses `URL.create(...)` so credentials never get string-formatted into a DSN.
- SQLite (local runs and the test suite) needs `check_same_thread=False` because
  FastAPI runs sync handlers on a thread pool.
- All ORM models must inherit from `declarativeBase`.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import declarative_base
from sqlalchemy.schema import MetaData
from crm_backend.database.config.config import settings

connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,
    username=settings.DB_USERNAME,
    password=settings.DB_PASSWORD,
    host=settings.DB_HOST,
    port=settings.DB_PORT,
    database=settings.DB_DATABASE_NAME,
)
"""Connection URL built from Settings."""

engine_options = {"pool_pre_ping": True}
if settings.DB_DRIVER_NAME.startswith("sqlite"):
    engine_options = {"connect_args": {"check_same_thread": False}}

connection_engine = create_engine(connection_url, **engine_options)
"""Engine object: core interface to the database."""

metadata = MetaData()
"""Schema-level information about tables, constraints and indexes."""

declarativeBase = declarative_base(metadata=metadata)
"""Root class for ORM models."""
