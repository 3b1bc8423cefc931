"""Database engine setup.

Production Pattern:
- One engine per database URL, shared by every manager
- Automatic table creation via init_database()
- SQLite gets a thread-safe configuration for the request threadpool
"""
from typing import Dict

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_booking.api.database_models import Base


# Global engines (initialized on first use)
_engines: Dict[str, Engine] = {}


def _create_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    is_memory = ":memory:" in database_url or database_url.rstrip("/") == "sqlite:"
    if is_memory:
        # Single shared connection so every session sees the same tables
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_engine(database_url: str) -> Engine:
    """
    Get or create the engine for a database URL.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        Engine instance shared by every caller using the same URL
    """
    if database_url not in _engines:
        _engines[database_url] = _create_engine(database_url)
    return _engines[database_url]


def get_session_factory(database_url: str) -> sessionmaker:
    """Session factory bound to the shared engine, tables created on first use."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_database(database_url: str):
    """
    Initialize database tables.

    Safe to call multiple times (idempotent).
    """
    Base.metadata.create_all(get_engine(database_url))


def close_engines():
    """
    Dispose every engine and its pooled connections.

    Call this during application shutdown.
    """
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
