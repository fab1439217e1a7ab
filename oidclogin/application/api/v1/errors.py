"""Centralized error transformation for API routes.

Maps oidclogin errors (domain and infrastructure) to HTTPException responses.
"""

from typing import Any

from fastapi import HTTPException

from oidclogin.domain.auth.error import MethodNotAllowed
from oidclogin.domain.shared.error import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    OidcLoginError,
    ValidationError,
)

DOMAIN_ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    InvalidStateError: 409,
    ConflictError: 409,
    AuthorizationError: 403,
    MethodNotAllowed: 405,
}


def _domain_status(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in DOMAIN_ERROR_STATUS_MAP:
            return DOMAIN_ERROR_STATUS_MAP[cls]
    return 400


def map_error(error: OidcLoginError) -> HTTPException:
    """Map an oidclogin error to an HTTPException carrying `{code, message}`."""
    detail: dict[str, Any] = {
        "code": error.code,
        "message": error.message,
    }

    if isinstance(error, InfrastructureError):
        return HTTPException(status_code=503, detail=detail)

    if isinstance(error, DomainError):
        if isinstance(error, ValidationError) and error.field is not None:
            detail["field"] = error.field
        # No session at all is 401, a rejected session is 403
        if isinstance(error, AuthorizationError) and error.code == "missing_session":
            return HTTPException(status_code=401, detail=detail)
        return HTTPException(status_code=_domain_status(error), detail=detail)

    return HTTPException(status_code=500, detail=detail)
