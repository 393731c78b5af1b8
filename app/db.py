"""Declarative base, engine and session factory for the durable backend."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, create_engine, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from app.config import Settings, get_settings

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local runs)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime that always comes back in UTC.

    SQLite keeps no offset, so values are stored as UTC and tagged with
    timezone.utc again on load.
    """

    impl = DateTime
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        return _as_utc(value)

    def process_result_value(self, value, dialect):
        return _as_utc(value)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, settings: Optional[Settings] = None) -> Engine:
    """Create an engine for the given URL, sized from settings for server databases."""
    settings = settings or get_settings()
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args["application_name"] = settings.db_app_name
    return create_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_session_factory(
    database_url: str, settings: Optional[Settings] = None
) -> sessionmaker:
    """Return a sessionmaker bound to a new engine for database_url."""
    engine = create_db_engine(database_url, settings)
    return sessionmaker(bind=engine, autoflush=False)
