"""Database schema management.

`create_schema` is used at startup when `database.auto_migrate` is set;
`run_migrations` applies the Alembic history (`oidclogin db upgrade`).
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.ext.asyncio import AsyncEngine

from oidclogin.infrastructure.persistence.tables import metadata

logger = logging.getLogger(__name__)

# Project root where alembic.ini lives
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def to_sync_url(database_url: str) -> str:
    """Convert an async database URL to its sync equivalent for Alembic.

    - sqlite+aiosqlite:/// -> sqlite:///
    - postgresql+asyncpg:// -> postgresql://
    """
    url = database_url.replace("+aiosqlite", "").replace("+asyncpg", "")
    if "sqlite:///" in url:
        prefix, path = url.split("///", 1)
        if path.startswith("~"):
            url = f"{prefix}///{Path(path).expanduser()}"
    return url


def get_alembic_config(database_url: str) -> AlembicConfig:
    config = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", to_sync_url(database_url))
    return config


def run_migrations(database_url: str, revision: str = "head") -> None:
    """Upgrade the database to `revision`. Synchronous; run before the server starts."""
    command.upgrade(get_alembic_config(database_url), revision)
    logger.info("Database migrations complete: revision=%s", revision)


async def create_schema(engine: AsyncEngine) -> None:
    """Create any missing tables straight from the table metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Database schema ensured")
