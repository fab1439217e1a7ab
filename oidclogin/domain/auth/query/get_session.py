"""GetCurrentSession query."""

from typing import ClassVar

from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.shared.query import Query, QueryHandler, Result


class GetCurrentSession(Query):
    __public__: ClassVar[bool] = True


class CurrentSession(Result):
    authenticated: bool
    login: str | None = None
    authenticated_via_remote: bool = False
    two_factor_verified: bool = False


class GetCurrentSessionHandler(QueryHandler[GetCurrentSession, CurrentSession]):
    flow: FlowContext

    async def run(self, query: GetCurrentSession) -> CurrentSession:
        login = self.flow.login
        return CurrentSession(
            authenticated=login is not None,
            login=login,
            authenticated_via_remote=self.flow.authenticated_via_remote,
            two_factor_verified=self.flow.two_factor_verified,
        )
