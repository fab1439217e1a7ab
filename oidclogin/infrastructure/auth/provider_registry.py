"""Provider registry implementation."""

from oidclogin.domain.auth.port.identity_provider import IdentityProvider
from oidclogin.domain.auth.port.provider_registry import ProviderRegistry


class InMemoryProviderRegistry(ProviderRegistry):
    """Providers keyed by name, registered once at application startup."""

    def __init__(self, providers: dict[str, IdentityProvider] | None = None) -> None:
        self._providers: dict[str, IdentityProvider] = providers or {}

    def get(self, provider: str) -> IdentityProvider | None:
        return self._providers.get(provider)

    def available_providers(self) -> list[str]:
        return list(self._providers.keys())

    def register(self, provider: IdentityProvider) -> None:
        self._providers[provider.provider_name] = provider
