"""Database engine and session factory creation."""

import os
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from oidclogin.config import DatabaseConfig

# Seconds a connection waits for another connection's write lock before failing
SQLITE_BUSY_TIMEOUT = 15.0


def _sqlite_path(url: str) -> str:
    return url[url.index("///") + 3 :]


def _is_sqlite_memory(url: str) -> bool:
    path = _sqlite_path(url)
    return not path or path.startswith(":memory:") or "mode=memory" in path


def _expand_sqlite_path(url: str) -> str:
    """Expand ~ in SQLite URLs and ensure the parent directory exists."""
    if not url.startswith("sqlite") or _is_sqlite_memory(url):
        return url

    prefix = url[: url.index("///") + 3]
    abs_path = os.path.abspath(os.path.expanduser(_sqlite_path(url)))
    Path(abs_path).parent.mkdir(parents=True, exist_ok=True)
    return f"{prefix}{abs_path}"


def _configure_sqlite(engine: AsyncEngine, begin_statement: str) -> None:
    """Enforce foreign keys (link cascade) and let SQLAlchemy own BEGIN so SAVEPOINTs work."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn: Any) -> None:
        conn.exec_driver_sql(begin_statement)


def create_db_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create async database engine for SQLite (aiosqlite) or PostgreSQL (asyncpg).

    File-backed SQLite gets one connection per session. Transactions start with
    BEGIN IMMEDIATE, so concurrent writers queue on the database lock (up to
    SQLITE_BUSY_TIMEOUT) instead of failing when upgrading a read lock.

    An in-memory database exists only inside its connection, so it is served
    through a single shared connection and suits one session at a time (tests).
    """
    url = _expand_sqlite_path(config.url)

    if url.startswith("sqlite"):
        if _is_sqlite_memory(url):
            engine = create_async_engine(
                url,
                echo=config.echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            _configure_sqlite(engine, "BEGIN")
            return engine

        engine = create_async_engine(
            url,
            echo=config.echo,
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT},
        )
        _configure_sqlite(engine, "BEGIN IMMEDIATE")
        return engine

    return create_async_engine(
        url,
        echo=config.echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
