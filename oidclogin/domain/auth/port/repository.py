"""Repository ports for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from oidclogin.domain.auth.model.account_link import AccountLink
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.shared.port import Port


class AccountLinkRepository(Port, Protocol):
    """Persistence for AccountLink rows."""

    @abstractmethod
    async def get_by_remote(self, provider: str, remote_user_id: str) -> AccountLink | None:
        """Get the link for a remote subject."""
        ...

    @abstractmethod
    async def get_by_login(self, login: str, provider: str) -> AccountLink | None:
        """Get a local user's link for one provider."""
        ...

    @abstractmethod
    async def add(self, link: AccountLink) -> bool:
        """Insert a link.

        Returns:
            False when a uniqueness constraint rejected the row (already linked)
        """
        ...

    @abstractmethod
    async def delete(self, login: str, provider: str) -> bool:
        """Delete a local user's link for one provider. Returns whether a row was removed."""
        ...


class UserRepository(Port, Protocol):
    """Read access to the host application's user store."""

    @abstractmethod
    async def get(self, login: str) -> LocalUser | None:
        """Get a user by login."""
        ...


class UserProvisioner(Port, Protocol):
    """Privileged user creation, usable while the caller is still anonymous."""

    @abstractmethod
    async def create_user(self, login: str, email: str, password: str) -> LocalUser:
        """Create a local user.

        Args:
            password: Stored as-is; callers pass a pre-hashed value

        Raises:
            ConflictError: A user with this login already exists (code "login_taken")
        """
        ...
