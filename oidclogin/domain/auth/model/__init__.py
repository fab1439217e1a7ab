"""Auth domain models."""

from .account_link import AccountLink
from .flow import CallbackOutcome, FlowContext, ResolvedIdentity
from .identity import Anonymous, Identity, Principal
from .user import LocalUser
from .value import OIDC_PROVIDER

__all__ = [
    "OIDC_PROVIDER",
    "AccountLink",
    "Anonymous",
    "CallbackOutcome",
    "FlowContext",
    "Identity",
    "LocalUser",
    "Principal",
    "ResolvedIdentity",
]
