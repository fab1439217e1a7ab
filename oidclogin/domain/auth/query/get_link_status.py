"""Queries backing the account security page."""

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.identity import Identity, Principal
from oidclogin.domain.auth.model.value import OIDC_PROVIDER
from oidclogin.domain.auth.service.link import AccountLinkService
from oidclogin.domain.auth.service.session import SessionBridge
from oidclogin.domain.shared.query import Query, QueryHandler, Result


class GetLinkStatus(Query):
    provider: str = OIDC_PROVIDER


class LinkStatus(Result):
    caption: str
    is_linked: bool
    remote_user_id: str | None = None
    form_nonce: str  # For the link (sign-in) and unlink forms


class GetLinkStatusHandler(QueryHandler[GetLinkStatus, LinkStatus]):
    """Link state of the signed-in user, for the link/unlink widget."""

    flow: FlowContext
    identity: Identity
    link_service: AccountLinkService
    oidc_config: OidcConfig

    async def run(self, query: GetLinkStatus) -> LinkStatus:
        assert isinstance(self.identity, Principal)  # guaranteed by the session gate
        link = await self.link_service.find_for_user(self.identity.login, query.provider)
        return LinkStatus(
            caption=self.oidc_config.authentication_name,
            is_linked=link is not None,
            remote_user_id=link.remote_user_id if link else None,
            form_nonce=self.flow.form_nonce(),
        )


class GetPasswordConfirmation(Query):
    provider: str = OIDC_PROVIDER


class PasswordConfirmation(Result):
    required: bool  # Whether sensitive actions still ask for the password
    offer_provider: bool  # Re-confirm through the provider instead (user is linked)
    caption: str
    form_nonce: str


class GetPasswordConfirmationHandler(QueryHandler[GetPasswordConfirmation, PasswordConfirmation]):
    """Data for the "confirm with provider" button shown next to password prompts."""

    flow: FlowContext
    identity: Identity
    link_service: AccountLinkService
    session_bridge: SessionBridge
    oidc_config: OidcConfig

    async def run(self, query: GetPasswordConfirmation) -> PasswordConfirmation:
        assert isinstance(self.identity, Principal)  # guaranteed by the session gate
        link = await self.link_service.find_for_user(self.identity.login, query.provider)
        return PasswordConfirmation(
            required=self.session_bridge.requires_password_confirmation(self.flow),
            offer_provider=link is not None,
            caption=self.oidc_config.authentication_name,
            form_nonce=self.flow.form_nonce(),
        )
