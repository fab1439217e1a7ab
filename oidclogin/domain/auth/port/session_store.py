"""Session store port: server-side memory between the two legs of the flow."""

from abc import abstractmethod
from datetime import datetime
from typing import Any, Protocol

from oidclogin.domain.shared.port import Port


class SessionStore(Port, Protocol):
    """Session data keyed by an opaque id; the user agent only ever holds the id."""

    @abstractmethod
    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Get the data of a live session, or None if unknown or expired."""
        ...

    @abstractmethod
    async def save(self, session_id: str, data: dict[str, Any], expires_at: datetime) -> None:
        """Create or replace a session."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove a session. Removing an unknown id is a no-op."""
        ...

    @abstractmethod
    async def purge_expired(self) -> int:
        """Remove expired sessions. Returns how many were removed."""
        ...
