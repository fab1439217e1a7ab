"""Auth domain services."""

from .auth import AuthService
from .link import AccountLinkService
from .logout import LogoutService
from .session import SessionBridge

__all__ = ["AccountLinkService", "AuthService", "LogoutService", "SessionBridge"]
