"""Logout command."""

from typing import ClassVar

from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.service.logout import LogoutService
from oidclogin.domain.shared.command import Command, CommandHandler, Result


class Logout(Command):
    __public__: ClassVar[bool] = True


class LogoutResult(Result):
    end_session_url: str | None  # None = redirect to the local logout page


class LogoutHandler(CommandHandler[Logout, LogoutResult]):
    """Computes the provider logout URL, then clears the whole session.

    The local session is cleared even when revocation at the provider fails.
    """

    flow: FlowContext
    logout_service: LogoutService

    async def run(self, cmd: Logout) -> LogoutResult:
        try:
            url = await self.logout_service.logout_url(self.flow)
        finally:
            self.flow.clear()
        return LogoutResult(end_session_url=url)
