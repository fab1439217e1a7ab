"""Database schema commands."""

import asyncio
import sys

import cyclopts
from sqlalchemy.exc import SQLAlchemyError

from oidclogin.cli.console import get_console
from oidclogin.config import Config
from oidclogin.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from oidclogin.infrastructure.persistence.migrate import create_schema, run_migrations
from oidclogin.infrastructure.persistence.repository.session import SQLAlchemySessionStore

app = cyclopts.App(name="db", help="Database schema management")


@app.command
def upgrade(revision: str = "head") -> None:
    """Apply Alembic migrations.

    Args:
        revision: Target revision.
    """
    console = get_console()
    config = Config()  # type: ignore[call-arg]
    try:
        run_migrations(config.database.url, revision)
    except SQLAlchemyError as e:
        console.error(
            f"Migration failed: {e}", hint="Check database.url (OIDCLOGIN_DATABASE__URL)"
        )
        sys.exit(1)
    console.success(f"Database upgraded to {revision}")


@app.command
def create() -> None:
    """Create missing tables directly from the table definitions, without Alembic."""
    console = get_console()
    config = Config()  # type: ignore[call-arg]

    async def _create() -> None:
        engine = create_db_engine(config.database)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    try:
        asyncio.run(_create())
    except SQLAlchemyError as e:
        console.error(f"Schema creation failed: {e}")
        sys.exit(1)
    console.success("Database tables created")
    console.warning(
        "No Alembic revision recorded; run `alembic stamp head` before `oidclogin db upgrade`"
    )


@app.command(name="purge-sessions")
def purge_sessions() -> None:
    """Delete expired sign-in sessions."""
    console = get_console()
    config = Config()  # type: ignore[call-arg]

    async def _purge() -> int:
        engine = create_db_engine(config.database)
        try:
            return await SQLAlchemySessionStore(create_session_factory(engine)).purge_expired()
        finally:
            await engine.dispose()

    try:
        purged = asyncio.run(_purge())
    except SQLAlchemyError as e:
        console.error(f"Session purge failed: {e}")
        sys.exit(1)
    console.success(f"Purged {purged} expired sessions")
