"""Unlink command: remove the signed-in user's link to the provider."""

from oidclogin.domain.auth.error import InvalidOrMissingCsrfNonce, MethodNotAllowed
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.identity import Identity, Principal
from oidclogin.domain.auth.model.value import OIDC_PROVIDER
from oidclogin.domain.auth.service.link import AccountLinkService
from oidclogin.domain.shared.command import Command, CommandHandler, Result


class Unlink(Command):
    method: str
    form_nonce: str | None = None
    provider: str = OIDC_PROVIDER


class UnlinkResult(Result):
    removed: bool  # False when there was nothing to remove


class UnlinkHandler(CommandHandler[Unlink, UnlinkResult]):
    flow: FlowContext
    identity: Identity
    link_service: AccountLinkService

    async def run(self, cmd: Unlink) -> UnlinkResult:
        if cmd.method.upper() != "POST":
            raise MethodNotAllowed("Unlinking requires POST")
        if not self.flow.verify_form_nonce(cmd.form_nonce):
            raise InvalidOrMissingCsrfNonce()

        assert isinstance(self.identity, Principal)  # guaranteed by the session gate
        removed = await self.link_service.unlink(self.identity.login, cmd.provider)
        return UnlinkResult(removed=removed)
