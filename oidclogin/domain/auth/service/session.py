"""Session bridge: turns a resolved local user into a signed-in session."""

import logging
import secrets
from typing import Literal

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.shared.service import Service

logger = logging.getLogger(__name__)

TOKEN_AUTH_BYTES = 16


class SessionBridge(Service):
    """Establishes the host session once the provider has proven the caller's identity.

    No password check happens here. In "force" mode the session gets a fresh
    random auth token; in "token" mode it carries the user's stored token.
    """

    _config: OidcConfig
    _auth_mode: Literal["force", "token"] = "force"

    def establish(self, ctx: FlowContext, user: LocalUser) -> None:
        """Sign `user` in on `ctx`.

        Raises:
            InvalidStateError: A session was already established for this request
        """
        if self._auth_mode == "token" and user.token_auth:
            token_auth = user.token_auth
        else:
            token_auth = secrets.token_hex(TOKEN_AUTH_BYTES)

        ctx.begin_session(user.login, token_auth, superuser=user.superuser_access)
        if self._config.bypass_two_fa:
            ctx.mark_two_factor_verified()

        logger.info(
            "Session established: login=%s, mode=%s, two_factor_bypassed=%s",
            user.login,
            self._auth_mode,
            self._config.bypass_two_fa,
        )

    def requires_password_confirmation(self, ctx: FlowContext) -> bool:
        """Whether a sensitive action should still ask the user to confirm their password."""
        if ctx.password_confirmed:
            return False
        if self._config.disable_password_confirmation and ctx.authenticated_via_remote:
            return False
        return True
