"""Per-request flow state carried between the two legs of the authorization-code flow.

The only memory between "redirect to the provider" and "provider redirects back"
is the caller's own session. FlowContext wraps that session mapping so the
state machine never touches ambient storage and can be driven with a plain dict.
"""

import hmac
import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from oidclogin.domain.auth.model.identity import Anonymous, Identity, Principal
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.shared.error import InvalidStateError

STATE_KEY = "oidclogin.state"
REMOTE_AUTH_KEY = "oidclogin.auth"
ID_TOKEN_KEY = "oidclogin.id_token"
REFRESH_TOKEN_KEY = "oidclogin.refresh_token"
NONCE_KEY = "oidclogin.nonce"

# Host session identity, written by the session bridge
LOGIN_KEY = "login"
TOKEN_AUTH_KEY = "token_auth"
SUPERUSER_KEY = "superuser"
TWO_FACTOR_KEY = "two_factor_verified"
PASSWORD_CONFIRMED_KEY = "password_confirmed"

_HOST_KEYS = (LOGIN_KEY, TOKEN_AUTH_KEY, SUPERUSER_KEY, TWO_FACTOR_KEY, PASSWORD_CONFIRMED_KEY)

STATE_BYTES = 16
NONCE_BYTES = 16


def _matches(expected: str | None, received: str | None) -> bool:
    if not expected or not received:
        return False
    return hmac.compare_digest(expected.encode(), received.encode())


class CallbackOutcome(StrEnum):
    """How a successful callback ended."""

    SIGNED_IN = "signed_in"  # Session established for the resolved user
    LINKED = "linked"  # Remote identity linked to the already signed-in caller
    REAUTHENTICATED = "reauthenticated"  # Signed-in caller re-confirmed their identity


@dataclass(frozen=True)
class ResolvedIdentity:
    """Outcome of looking a remote subject up in the link store.

    Not persisted; consumed immediately by the resolution policy.
    """

    remote_user_id: str
    email: str | None
    user: LocalUser | None = None  # None when no link exists for the subject


class FlowContext:
    """Session-backed state for one caller's sign-in flow."""

    def __init__(self, session: MutableMapping[str, Any]) -> None:
        self._session = session
        self._established = False

    # -- anti-replay state ---------------------------------------------------

    @property
    def state(self) -> str | None:
        return self._session.get(STATE_KEY)

    def issue_state(self) -> str:
        """Generate and store a fresh anti-replay token, replacing any previous one."""
        state = secrets.token_hex(STATE_BYTES)
        self._session[STATE_KEY] = state
        return state

    def consume_state(self, received: str | None) -> bool:
        """Compare `received` with the stored token. The token is removed either way."""
        expected = self._session.pop(STATE_KEY, None)
        return _matches(expected, received)

    # -- anti-CSRF form nonce ------------------------------------------------

    def form_nonce(self) -> str:
        """Return this session's form nonce, creating it on first use."""
        nonce = self._session.get(NONCE_KEY)
        if not nonce:
            nonce = secrets.token_urlsafe(NONCE_BYTES)
            self._session[NONCE_KEY] = nonce
        return nonce

    def verify_form_nonce(self, received: str | None) -> bool:
        return _matches(self._session.get(NONCE_KEY), received)

    # -- remote authentication -----------------------------------------------

    @property
    def authenticated_via_remote(self) -> bool:
        return bool(self._session.get(REMOTE_AUTH_KEY, False))

    @property
    def id_token(self) -> str | None:
        return self._session.get(ID_TOKEN_KEY)

    @property
    def refresh_token(self) -> str | None:
        return self._session.get(REFRESH_TOKEN_KEY)

    def mark_remote_authenticated(
        self, id_token: str | None = None, refresh_token: str | None = None
    ) -> None:
        self._session[REMOTE_AUTH_KEY] = True
        for key, value in ((ID_TOKEN_KEY, id_token), (REFRESH_TOKEN_KEY, refresh_token)):
            if value:
                self._session[key] = value
            else:
                self._session.pop(key, None)

    def clear_remote_authenticated(self) -> None:
        for key in (REMOTE_AUTH_KEY, ID_TOKEN_KEY, REFRESH_TOKEN_KEY):
            self._session.pop(key, None)

    # -- host session --------------------------------------------------------

    @property
    def login(self) -> str | None:
        return self._session.get(LOGIN_KEY)

    @property
    def token_auth(self) -> str | None:
        return self._session.get(TOKEN_AUTH_KEY)

    @property
    def two_factor_verified(self) -> bool:
        return bool(self._session.get(TWO_FACTOR_KEY, False))

    @property
    def password_confirmed(self) -> bool:
        return bool(self._session.get(PASSWORD_CONFIRMED_KEY, False))

    @property
    def is_established(self) -> bool:
        """Whether a session was established during this request."""
        return self._established

    def identity(self) -> Identity:
        """The caller as recorded in the session."""
        login = self.login
        if not login:
            return Anonymous()
        return Principal(login=login, superuser=bool(self._session.get(SUPERUSER_KEY, False)))

    def begin_session(self, login: str, token_auth: str, superuser: bool) -> None:
        """Replace the host identity in the session. Allowed once per request."""
        if self._established:
            raise InvalidStateError(
                "Session already established for this request",
                code="session_already_established",
            )
        for key in _HOST_KEYS:
            self._session.pop(key, None)
        self._session[LOGIN_KEY] = login
        self._session[TOKEN_AUTH_KEY] = token_auth
        self._session[SUPERUSER_KEY] = superuser
        self._established = True

    def mark_two_factor_verified(self) -> None:
        self._session[TWO_FACTOR_KEY] = True

    def confirm_password(self) -> None:
        self._session[PASSWORD_CONFIRMED_KEY] = True

    def clear(self) -> None:
        """Drop everything, e.g. on logout."""
        self._session.clear()
