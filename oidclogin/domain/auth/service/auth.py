"""Auth service: the authorization-code state machine and the account resolution policy."""

import logging

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.error import (
    AllowedSignupDomainsDenied,
    AlreadyLinkedToDifferentAccount,
    NotConfigured,
    SignupDisabled,
    StateMismatch,
    SuperUserOauthDisabled,
    UnknownProvider,
    UserNotFound,
    UserNotFoundAndNoEmail,
)
from oidclogin.domain.auth.model.flow import CallbackOutcome, FlowContext, ResolvedIdentity
from oidclogin.domain.auth.model.identity import Identity, Principal
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.auth.model.value import OIDC_PROVIDER, UNUSABLE_PASSWORD, email_domain
from oidclogin.domain.auth.port.identity_provider import IdentityInfo, IdentityProvider
from oidclogin.domain.auth.port.provider_registry import ProviderRegistry
from oidclogin.domain.auth.port.repository import UserProvisioner, UserRepository
from oidclogin.domain.auth.service.link import AccountLinkService
from oidclogin.domain.auth.service.session import SessionBridge
from oidclogin.domain.shared.service import Service

logger = logging.getLogger(__name__)


class AuthService(Service):
    """Drives initiate -> callback -> resolve -> session establishment.

    - initiate_login: store a fresh state and build the authorization URL
    - complete_oauth: verify state, exchange the code, fetch claims, resolve, sign in
    - resolve: map a remote subject to a local user (with optional auto-linking)

    Callback checks run in a fixed order: configuration, state, provider,
    token exchange, userinfo, resolution. Resolution looks links up (and
    auto-links) before it ever considers signup.
    """

    _config: OidcConfig
    _provider_registry: ProviderRegistry
    _link_service: AccountLinkService
    _user_repo: UserRepository
    _provisioner: UserProvisioner
    _session_bridge: SessionBridge

    def _ensure_configured(self) -> None:
        if not self._config.is_configured:
            raise NotConfigured()

    def _get_provider(self, provider: str) -> IdentityProvider:
        identity_provider = self._provider_registry.get(provider)
        if identity_provider is None:
            raise UnknownProvider(f"Unknown identity provider: {provider}")
        return identity_provider

    async def initiate_login(self, ctx: FlowContext, redirect_uri: str) -> str:
        """Store a fresh anti-replay state and return the authorization URL.

        No local user state is touched.
        """
        self._ensure_configured()
        provider = self._get_provider(OIDC_PROVIDER)
        state = ctx.issue_state()
        return provider.get_authorization_url(state=state, redirect_uri=redirect_uri)

    async def complete_oauth(
        self,
        ctx: FlowContext,
        caller: Identity,
        provider: str,
        code: str,
        state: str | None,
        redirect_uri: str,
    ) -> CallbackOutcome:
        """Finish the flow for a provider callback.

        Args:
            ctx: Session-backed flow context of the caller
            caller: Who is calling (Anonymous, or the signed-in Principal)
            provider: The callback's `provider` parameter
            code: Authorization code
            state: The callback's `state` parameter
            redirect_uri: Must equal the one used when initiating

        Returns:
            How the flow ended (signed in, linked, or re-authenticated)
        """
        self._ensure_configured()

        if not ctx.consume_state(state):
            logger.warning("Callback rejected: state mismatch (provider=%s)", provider)
            raise StateMismatch()

        identity_provider = self._get_provider(provider)

        tokens = await identity_provider.exchange_code(code, redirect_uri, state or "")
        ctx.mark_remote_authenticated(tokens.id_token, tokens.refresh_token)

        info = await identity_provider.fetch_identity(tokens)
        resolved = await self.resolve(identity_provider.provider_name, info)

        return await self._apply_policy(ctx, caller, identity_provider.provider_name, resolved)

    async def resolve(self, provider: str, info: IdentityInfo) -> ResolvedIdentity:
        """Look the remote subject up, auto-linking by login when enabled.

        Raises:
            UserNotFound: A link exists but its local user does not
        """
        link = await self._link_service.find_by_remote(provider, info.external_id)

        if link is None and self._config.auto_linking:
            local_user = await self._user_repo.get(info.external_id)
            if local_user is not None:
                await self._link_service.link(local_user.login, provider, info.external_id)
                link = await self._link_service.find_by_remote(provider, info.external_id)

        if link is None:
            return ResolvedIdentity(remote_user_id=info.external_id, email=info.email)

        user = await self._user_repo.get(link.login)
        if user is None:
            logger.error(
                "Account link without local user: login=%s, provider=%s, remote_user_id=%s",
                link.login,
                provider,
                info.external_id,
            )
            raise UserNotFound()

        return ResolvedIdentity(remote_user_id=info.external_id, email=info.email, user=user)

    async def _apply_policy(
        self,
        ctx: FlowContext,
        caller: Identity,
        provider: str,
        resolved: ResolvedIdentity,
    ) -> CallbackOutcome:
        if resolved.user is None:
            if isinstance(caller, Principal):
                await self._link_to_caller(caller, provider, resolved)
                return CallbackOutcome.LINKED
            user = await self._signup(provider, resolved)
            self._session_bridge.establish(ctx, user)
            return CallbackOutcome.SIGNED_IN

        user = resolved.user
        if isinstance(caller, Principal):
            if caller.login != user.login:
                logger.warning(
                    "Callback rejected: remote_user_id=%s belongs to login=%s, caller=%s",
                    resolved.remote_user_id,
                    user.login,
                    caller.login,
                )
                raise AlreadyLinkedToDifferentAccount()
            ctx.confirm_password()
            logger.info("Identity re-confirmed: login=%s", user.login)
            return CallbackOutcome.REAUTHENTICATED

        if self._config.disable_superuser and user.superuser_access:
            logger.warning("Callback rejected: superuser sign-in disabled, login=%s", user.login)
            raise SuperUserOauthDisabled()

        self._session_bridge.establish(ctx, user)
        return CallbackOutcome.SIGNED_IN

    async def _link_to_caller(
        self, caller: Principal, provider: str, resolved: ResolvedIdentity
    ) -> None:
        existing = await self._link_service.find_for_user(caller.login, provider)
        if existing is not None and existing.remote_user_id != resolved.remote_user_id:
            logger.warning(
                "Link rejected: login=%s already linked to remote_user_id=%s",
                caller.login,
                existing.remote_user_id,
            )
            raise AlreadyLinkedToDifferentAccount(
                "Your account is already linked to a different remote identity"
            )

        if await self._link_service.link(caller.login, provider, resolved.remote_user_id):
            return

        # Lost a race: only fine if the winning row is ours
        link = await self._link_service.find_by_remote(provider, resolved.remote_user_id)
        if link is None or link.login != caller.login:
            raise AlreadyLinkedToDifferentAccount()

    async def _signup(self, provider: str, resolved: ResolvedIdentity) -> LocalUser:
        if not self._config.allow_signup:
            logger.warning(
                "Callback rejected: no link for remote_user_id=%s and signup disabled",
                resolved.remote_user_id,
            )
            raise SignupDisabled()

        email = resolved.email
        if not email:
            raise UserNotFoundAndNoEmail()

        allowed = self._config.signup_domains
        if allowed and email_domain(email) not in allowed:
            logger.warning("Signup rejected: domain %s not allowed", email_domain(email))
            raise AllowedSignupDomainsDenied()

        user = await self._provisioner.create_user(
            login=email, email=email, password=UNUSABLE_PASSWORD
        )
        logger.info("User signed up: login=%s, provider=%s", user.login, provider)

        if not await self._link_service.link(user.login, provider, resolved.remote_user_id):
            raise AlreadyLinkedToDifferentAccount()
        return user
