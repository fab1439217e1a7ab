"""Auth domain commands."""

from .login import (
    CompleteOAuth,
    CompleteOAuthHandler,
    CompleteOAuthResult,
    InitiateLogin,
    InitiateLoginHandler,
    InitiateLoginResult,
)
from .logout import Logout, LogoutHandler, LogoutResult
from .unlink import Unlink, UnlinkHandler, UnlinkResult

__all__ = [
    "CompleteOAuth",
    "CompleteOAuthHandler",
    "CompleteOAuthResult",
    "InitiateLogin",
    "InitiateLoginHandler",
    "InitiateLoginResult",
    "Logout",
    "LogoutHandler",
    "LogoutResult",
    "Unlink",
    "UnlinkHandler",
    "UnlinkResult",
]
