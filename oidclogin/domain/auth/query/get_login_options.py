"""GetLoginOptions query: what the sign-in page needs to render the provider button."""

from typing import ClassVar

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.shared.query import Query, QueryHandler, Result


class GetLoginOptions(Query):
    __public__: ClassVar[bool] = True


class LoginOptions(Result):
    caption: str
    configured: bool
    hide_password_login: bool
    direct_initiation_allowed: bool
    form_nonce: str  # Post back to the sign-in endpoint


class GetLoginOptionsHandler(QueryHandler[GetLoginOptions, LoginOptions]):
    flow: FlowContext
    oidc_config: OidcConfig

    async def run(self, query: GetLoginOptions) -> LoginOptions:
        return LoginOptions(
            caption=self.oidc_config.authentication_name,
            configured=self.oidc_config.is_configured,
            hide_password_login=self.oidc_config.hide_password_login,
            direct_initiation_allowed=not self.oidc_config.disable_direct_initiation,
            form_nonce=self.flow.form_nonce(),
        )
