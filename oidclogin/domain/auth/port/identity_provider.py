"""Identity provider port for the auth domain."""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol

from oidclogin.domain.shared.port import Port


@dataclass(frozen=True)
class ProviderTokens:
    """Tokens returned by the provider's token endpoint."""

    access_token: str
    id_token: str | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class IdentityInfo:
    """Claims read from the provider's userinfo endpoint."""

    provider: str  # e.g., "oidc"
    external_id: str  # Subject identifier, always a string
    email: str | None  # Not every provider releases an e-mail claim
    raw_data: dict[str, Any] = field(default_factory=dict)


class IdentityProvider(Port, Protocol):
    """Port for an authorization-code identity provider.

    The flow controller only talks to providers through this interface, so
    adding a provider means adding an adapter and registering it.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider key stored in account links (e.g. 'oidc')."""
        ...

    @abstractmethod
    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Build the URL the user agent is redirected to.

        Args:
            state: Anti-replay token stored in the caller's session
            redirect_uri: Where the provider redirects after authentication

        Returns:
            Authorization endpoint URL carrying client_id, scope, redirect_uri,
            state and response_type=code
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: str, state: str) -> ProviderTokens:
        """Exchange an authorization code at the token endpoint.

        Raises:
            InvalidProviderResponse: Non-2xx status, malformed JSON or no access token
            ProviderUnreachable: Connection failure or timeout
        """
        ...

    @abstractmethod
    async def fetch_identity(self, tokens: ProviderTokens) -> IdentityInfo:
        """Fetch the subject and e-mail claims from the userinfo endpoint.

        Raises:
            InvalidProviderResponse: Non-2xx status, malformed JSON or no subject
            ProviderUnreachable: Connection failure or timeout
        """
        ...

    @abstractmethod
    def end_session_url(
        self, id_token_hint: str | None, post_logout_redirect_uri: str
    ) -> str | None:
        """Provider logout URL, or None when no end-session endpoint is configured."""
        ...

    @abstractmethod
    async def revoke(self, refresh_token: str) -> None:
        """Revoke a refresh token at the end-session endpoint."""
        ...
