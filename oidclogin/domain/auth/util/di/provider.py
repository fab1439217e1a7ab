"""DI provider for auth domain."""

from dishka import from_context, provide
from starlette.requests import Request

from oidclogin.config import Config, OidcConfig
from oidclogin.domain.auth.command.login import CompleteOAuthHandler, InitiateLoginHandler
from oidclogin.domain.auth.command.logout import LogoutHandler
from oidclogin.domain.auth.command.unlink import UnlinkHandler
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.identity import Identity
from oidclogin.domain.auth.port.provider_registry import ProviderRegistry
from oidclogin.domain.auth.port.repository import (
    AccountLinkRepository,
    UserProvisioner,
    UserRepository,
)
from oidclogin.domain.auth.query.get_link_status import (
    GetLinkStatusHandler,
    GetPasswordConfirmationHandler,
)
from oidclogin.domain.auth.query.get_login_options import GetLoginOptionsHandler
from oidclogin.domain.auth.query.get_session import GetCurrentSessionHandler
from oidclogin.domain.auth.service.auth import AuthService
from oidclogin.domain.auth.service.link import AccountLinkService
from oidclogin.domain.auth.service.logout import LogoutService
from oidclogin.domain.auth.service.session import SessionBridge
from oidclogin.util.di.base import Provider
from oidclogin.util.di.scope import Scope


class AuthProvider(Provider):
    """DI provider for auth domain services and handlers."""

    request = from_context(provides=Request, scope=Scope.UOW)

    # Command Handlers
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_oauth_handler = provide(CompleteOAuthHandler, scope=Scope.UOW)
    unlink_handler = provide(UnlinkHandler, scope=Scope.UOW)
    logout_handler = provide(LogoutHandler, scope=Scope.UOW)

    # Query Handlers
    get_login_options_handler = provide(GetLoginOptionsHandler, scope=Scope.UOW)
    get_link_status_handler = provide(GetLinkStatusHandler, scope=Scope.UOW)
    get_password_confirmation_handler = provide(GetPasswordConfirmationHandler, scope=Scope.UOW)
    get_current_session_handler = provide(GetCurrentSessionHandler, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_oidc_config(self, config: Config) -> OidcConfig:
        return config.oidc

    @provide(scope=Scope.UOW)
    def get_flow_context(self, request: Request) -> FlowContext:
        """Flow state lives in the caller's server-side session."""
        return FlowContext(request.session)

    @provide(scope=Scope.UOW)
    def get_identity(self, flow: FlowContext) -> Identity:
        """Anonymous for callers without a session, Principal otherwise."""
        return flow.identity()

    @provide(scope=Scope.UOW)
    def get_link_service(self, link_repo: AccountLinkRepository) -> AccountLinkService:
        return AccountLinkService(_link_repo=link_repo)

    @provide(scope=Scope.APP)
    def get_session_bridge(self, config: Config) -> SessionBridge:
        return SessionBridge(_config=config.oidc, _auth_mode=config.session.auth_mode)

    @provide(scope=Scope.UOW)
    def get_auth_service(
        self,
        config: Config,
        provider_registry: ProviderRegistry,
        link_service: AccountLinkService,
        user_repo: UserRepository,
        provisioner: UserProvisioner,
        session_bridge: SessionBridge,
    ) -> AuthService:
        return AuthService(
            _config=config.oidc,
            _provider_registry=provider_registry,
            _link_service=link_service,
            _user_repo=user_repo,
            _provisioner=provisioner,
            _session_bridge=session_bridge,
        )

    @provide(scope=Scope.UOW)
    def get_logout_service(
        self, config: Config, provider_registry: ProviderRegistry
    ) -> LogoutService:
        return LogoutService(
            _config=config.oidc,
            _provider_registry=provider_registry,
            _post_logout_redirect_uri=config.frontend.logout_url,
        )
