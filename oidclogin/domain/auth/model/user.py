"""Local user read model.

The user store is owned by the host application; the auth domain only needs
the handful of fields below to resolve and sign in a user.
"""

from oidclogin.domain.shared.model.entity import Entity


class LocalUser(Entity):
    """A local account as seen by the sign-in flow.

    Invariants:
    - `login` is the unique, immutable key of the account
    """

    login: str
    email: str | None = None
    superuser_access: bool = False
    token_auth: str | None = None  # Existing authentication token, if the store keeps one
