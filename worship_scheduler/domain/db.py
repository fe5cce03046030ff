"""Database initialization and utilities."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///worship_scheduler.db"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str = DEFAULT_DB_URL, echo: bool = False, busy_timeout: float = 30.0) -> Engine:
    """
    Create SQLAlchemy engine.

    SQLite connections get a busy timeout, so writers queue behind the
    parent lock instead of failing, and foreign keys switched on.
    """
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args = {"timeout": busy_timeout, "check_same_thread": False}
    engine = create_engine(db_url, echo=echo, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_database(db_url: str = DEFAULT_DB_URL) -> Engine:
    """Initialize database and create all tables."""
    engine = create_db_engine(db_url)
    Base.metadata.create_all(engine)
    logger.info("Database initialized: %s", db_url)
    return engine


def get_session_factory(db_url: str | Engine = DEFAULT_DB_URL) -> sessionmaker:
    """Get a session factory for a database URL or an existing engine."""
    engine = db_url if isinstance(db_url, Engine) else create_db_engine(db_url)
    return sessionmaker(bind=engine, expire_on_commit=False)


def get_session(db_url: str = DEFAULT_DB_URL) -> Session:
    """Get a new database session."""
    SessionFactory = get_session_factory(db_url)
    return SessionFactory()


def reset_database(db_url: str = DEFAULT_DB_URL) -> None:
    """Drop all tables and recreate (WARNING: deletes all data!)."""
    engine = create_db_engine(db_url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.warning("Database reset: %s", db_url)
