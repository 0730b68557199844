"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from classbook.core.config import settings

logger = logging.getLogger(__name__)


Base: DeclarativeMeta = declarative_base()


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured dialect."""
    if db_url.startswith("sqlite"):
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "connect_args": {"application_name": "classbook_backend"},
    }


def _install_sqlite_locking(engine: Engine) -> None:
    """
    Take the SQLite write lock at transaction start.

    pysqlite defers BEGIN until the first DML statement, which lets two
    transactions read the same seat count before either writes. Emitting
    BEGIN IMMEDIATE serializes writers for the whole unit of work instead.
    Read-only transactions take the same lock, so on SQLite readers queue
    behind writers and each other until their session commits or rolls back.
    """

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        connection_record.info["connect_time"] = datetime.now()

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine_for_url(db_url: str) -> Engine:
    """Create an engine with the locking and pooling setup used by the app."""
    new_engine = create_engine(db_url, **_build_engine_kwargs(db_url))
    if new_engine.dialect.name == "sqlite":
        _install_sqlite_locking(new_engine)
    else:

        @event.listens_for(new_engine, "connect")
        def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
            connection_record.info["connect_time"] = datetime.now()
            logger.debug("Database connection established")

    return new_engine


engine: Engine = create_engine_for_url(settings.get_database_url())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "create_engine_for_url",
    "engine",
    "get_db",
]
