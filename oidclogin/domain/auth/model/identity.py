"""Identity hierarchy: who is calling, resolved per request from the session."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Base for all request identities."""

    pass


@dataclass(frozen=True)
class Anonymous(Identity):
    """Caller without a signed-in session."""

    pass


@dataclass(frozen=True)
class Principal(Identity):
    """Caller with a signed-in session."""

    login: str
    superuser: bool = False
