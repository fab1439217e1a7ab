"""Logout augmentation for sessions established through the provider."""

import logging

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.value import OIDC_PROVIDER
from oidclogin.domain.auth.port.provider_registry import ProviderRegistry
from oidclogin.domain.shared.service import Service

logger = logging.getLogger(__name__)


class LogoutService(Service):
    """Sends remotely authenticated users through the provider's end-session endpoint."""

    _config: OidcConfig
    _provider_registry: ProviderRegistry
    _post_logout_redirect_uri: str

    async def logout_url(self, ctx: FlowContext) -> str | None:
        """Provider logout URL for this session, or None to use the local landing page.

        Revokes the retained refresh token first when `revoke_on_logout` is set.
        The remote-auth flag is cleared once the provider accepted the logout.

        Raises:
            InvalidProviderResponse: Revocation did not answer 204
            ProviderUnreachable: Revocation request failed
        """
        if not ctx.authenticated_via_remote:
            return None

        provider = self._provider_registry.get(OIDC_PROVIDER)
        if provider is None:
            ctx.clear_remote_authenticated()
            return None

        url = provider.end_session_url(ctx.id_token, self._post_logout_redirect_uri)
        if url is not None and self._config.revoke_on_logout and ctx.refresh_token:
            await provider.revoke(ctx.refresh_token)
            logger.info("Refresh token revoked at end-session endpoint")

        ctx.clear_remote_authenticated()
        return url
