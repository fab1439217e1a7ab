import httpx
from dishka import AsyncContainer, from_context, make_async_container

from oidclogin.config import Config
from oidclogin.domain.auth.util.di import AuthProvider
from oidclogin.infrastructure.auth import AuthInfraProvider
from oidclogin.infrastructure.persistence import PersistenceProvider
from oidclogin.util.di.base import Provider
from oidclogin.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config, http_client: httpx.AsyncClient) -> AsyncContainer:
    return make_async_container(
        ConfigProvider(),
        PersistenceProvider(),
        AuthProvider(),
        AuthInfraProvider(),
        context={Config: config, httpx.AsyncClient: http_client},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
