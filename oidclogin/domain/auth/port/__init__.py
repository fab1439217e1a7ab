"""Ports of the auth domain."""

from .identity_provider import IdentityInfo, IdentityProvider, ProviderTokens
from .provider_registry import ProviderRegistry
from .repository import AccountLinkRepository, UserProvisioner, UserRepository
from .session_store import SessionStore

__all__ = [
    "AccountLinkRepository",
    "IdentityInfo",
    "IdentityProvider",
    "ProviderRegistry",
    "ProviderTokens",
    "SessionStore",
    "UserProvisioner",
    "UserRepository",
]
