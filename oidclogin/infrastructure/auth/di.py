"""DI provider for auth infrastructure."""

import httpx
from dishka import from_context, provide

from oidclogin.config import Config
from oidclogin.domain.auth.port.provider_registry import ProviderRegistry
from oidclogin.infrastructure.auth.oidc import OidcIdentityProvider
from oidclogin.infrastructure.auth.provider_registry import InMemoryProviderRegistry
from oidclogin.util.di.base import Provider
from oidclogin.util.di.scope import Scope


class AuthInfraProvider(Provider):
    """DI provider for auth infrastructure adapters."""

    # Shared HTTP client, created and closed by the application lifespan
    http_client = from_context(provides=httpx.AsyncClient, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def get_provider_registry(
        self, config: Config, http_client: httpx.AsyncClient
    ) -> ProviderRegistry:
        """The "oidc" provider is always registered; an incomplete config is
        reported per request as NotConfigured."""
        registry = InMemoryProviderRegistry()
        registry.register(OidcIdentityProvider(config=config.oidc, http_client=http_client))
        return registry


def create_http_client(config: Config) -> httpx.AsyncClient:
    """Client used for all identity provider calls (connection pooling, explicit timeouts)."""
    timeout = httpx.Timeout(
        connect=config.http.connect_timeout,
        read=config.http.read_timeout,
        write=config.http.write_timeout,
        pool=config.http.pool_timeout,
    )
    return httpx.AsyncClient(timeout=timeout)
