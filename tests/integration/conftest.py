"""Fixtures for SQLite integration tests."""

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from oidclogin.config import DatabaseConfig
from oidclogin.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from oidclogin.infrastructure.persistence.migrate import create_schema


@pytest_asyncio.fixture
async def db_engine():
    """Per-test in-memory database with the schema created."""
    engine = create_db_engine(DatabaseConfig(url="sqlite+aiosqlite:///:memory:"))
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine):
    factory = create_session_factory(db_engine)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def file_db_engine(tmp_path):
    """Per-test file-backed database, one connection per session."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'oidclogin.db'}"
    engine = create_db_engine(DatabaseConfig(url=url))
    await create_schema(engine)
    yield engine
    await engine.dispose()
