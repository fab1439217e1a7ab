"""Sign-in commands for the authorization-code flow."""

import logging
from typing import ClassVar

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.error import InvalidOrMissingCsrfNonce, MethodNotAllowed
from oidclogin.domain.auth.model.flow import CallbackOutcome, FlowContext
from oidclogin.domain.auth.model.identity import Identity
from oidclogin.domain.auth.service.auth import AuthService
from oidclogin.domain.shared.command import Command, CommandHandler, Result

logger = logging.getLogger(__name__)


class InitiateLogin(Command):
    """Command to start the sign-in flow."""

    __public__: ClassVar[bool] = True

    method: str  # HTTP method of the initiating request
    form_nonce: str | None = None  # Required for POST
    redirect_uri: str  # Callback URL the provider redirects back to


class InitiateLoginResult(Result):
    authorization_url: str


class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    flow: FlowContext
    auth_service: AuthService
    oidc_config: OidcConfig

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        method = cmd.method.upper()
        if method == "POST":
            if not self.flow.verify_form_nonce(cmd.form_nonce):
                logger.warning("Sign-in rejected: invalid form nonce")
                raise InvalidOrMissingCsrfNonce()
        elif method != "GET" or self.oidc_config.disable_direct_initiation:
            raise MethodNotAllowed(f"Sign-in cannot be started with {method}")

        authorization_url = await self.auth_service.initiate_login(self.flow, cmd.redirect_uri)
        return InitiateLoginResult(authorization_url=authorization_url)


class CompleteOAuth(Command):
    """Command to finish the flow from the provider's callback."""

    __public__: ClassVar[bool] = True

    provider: str
    code: str
    state: str | None = None
    redirect_uri: str  # Must match the one used when initiating


class CompleteOAuthResult(Result):
    outcome: CallbackOutcome
    login: str | None = None  # Signed-in login, if a session was established


class CompleteOAuthHandler(CommandHandler[CompleteOAuth, CompleteOAuthResult]):
    """Handler for CompleteOAuth command."""

    flow: FlowContext
    identity: Identity
    auth_service: AuthService

    async def run(self, cmd: CompleteOAuth) -> CompleteOAuthResult:
        outcome = await self.auth_service.complete_oauth(
            ctx=self.flow,
            caller=self.identity,
            provider=cmd.provider,
            code=cmd.code,
            state=cmd.state,
            redirect_uri=cmd.redirect_uri,
        )
        return CompleteOAuthResult(outcome=outcome, login=self.flow.login)
