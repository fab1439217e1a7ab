from typing import AsyncIterable

from dishka import provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from oidclogin.config import Config
from oidclogin.domain.auth.port.repository import (
    AccountLinkRepository,
    UserProvisioner,
    UserRepository,
)
from oidclogin.domain.auth.port.session_store import SessionStore
from oidclogin.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from oidclogin.infrastructure.persistence.repository.auth import (
    SQLAlchemyAccountLinkRepository,
    SQLAlchemyUserProvisioner,
    SQLAlchemyUserRepository,
)
from oidclogin.infrastructure.persistence.repository.session import SQLAlchemySessionStore
from oidclogin.util.di.base import Provider
from oidclogin.util.di.scope import Scope


class PersistenceProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    def get_session_store(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> SessionStore:
        return SQLAlchemySessionStore(session_factory)

    # UOW-scoped session (one per request), committed when the request completes
    @provide(scope=Scope.UOW)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            yield session
            await session.commit()

    # UOW-scoped repositories
    link_repo = provide(
        SQLAlchemyAccountLinkRepository, scope=Scope.UOW, provides=AccountLinkRepository
    )
    user_repo = provide(SQLAlchemyUserRepository, scope=Scope.UOW, provides=UserRepository)
    user_provisioner = provide(
        SQLAlchemyUserProvisioner, scope=Scope.UOW, provides=UserProvisioner
    )
