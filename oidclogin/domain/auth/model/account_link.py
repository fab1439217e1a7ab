"""AccountLink entity for the auth domain.

Links a local user (by login) to a remote identity at an identity provider.
"""

from datetime import UTC, datetime

from oidclogin.domain.shared.model.entity import Entity


class AccountLink(Entity):
    """A link between a local login and a remote subject identifier.

    Examples:
    - provider="oidc", remote_user_id="42", login="jane@example.com"

    Invariants:
    - `(provider, remote_user_id)` is globally unique (primary lookup key)
    - `(provider, login)` is unique: one link per provider per local user
    - Links are never updated in place; relinking requires an unlink first
    - Deleting the local user deletes its links
    """

    login: str
    provider: str
    remote_user_id: str
    connected_at: datetime

    @classmethod
    def create(cls, login: str, provider: str, remote_user_id: str) -> "AccountLink":
        """Create a new account link."""
        return cls(
            login=login,
            provider=provider,
            remote_user_id=remote_user_id,
            connected_at=datetime.now(UTC),
        )
