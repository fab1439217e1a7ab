"""SQLAlchemy session store."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from oidclogin.domain.auth.port.session_store import SessionStore
from oidclogin.infrastructure.persistence.tables import web_sessions_table


class SQLAlchemySessionStore(SessionStore):
    """SessionStore backed by the `web_sessions` table.

    Runs outside the per-request unit of work: every call is its own short
    transaction, so session data is durable before the next request reads it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self, session_id: str) -> dict[str, Any] | None:
        stmt = select(web_sessions_table.c.data).where(
            web_sessions_table.c.id == session_id,
            web_sessions_table.c.expires_at > datetime.now(UTC),
        )
        async with self._session_factory() as session, session.begin():
            result = await session.execute(stmt)
            data = result.scalar_one_or_none()
        return dict(data) if data is not None else None

    async def save(self, session_id: str, data: dict[str, Any], expires_at: datetime) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                delete(web_sessions_table).where(web_sessions_table.c.id == session_id)
            )
            await session.execute(
                insert(web_sessions_table).values(
                    id=session_id, data=data, expires_at=expires_at
                )
            )

    async def delete(self, session_id: str) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                delete(web_sessions_table).where(web_sessions_table.c.id == session_id)
            )

    async def purge_expired(self) -> int:
        stmt = delete(web_sessions_table).where(
            web_sessions_table.c.expires_at <= datetime.now(UTC)
        )
        async with self._session_factory() as session, session.begin():
            result = await session.execute(stmt)
        return result.rowcount
