"""Provider registry port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from oidclogin.domain.auth.port.identity_provider import IdentityProvider
from oidclogin.domain.shared.port import Port


class ProviderRegistry(Port, Protocol):
    """Registry of identity providers, looked up by the callback's `provider` parameter."""

    @abstractmethod
    def get(self, provider: str) -> IdentityProvider | None:
        """Get an identity provider by key, or None if unknown."""
        ...

    @abstractmethod
    def available_providers(self) -> list[str]:
        """Keys of all registered providers."""
        ...

    def is_available(self, provider: str) -> bool:
        return provider in self.available_providers()
