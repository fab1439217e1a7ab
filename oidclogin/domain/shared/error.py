"""Error hierarchy for oidclogin.

Error layers:
- OidcLoginError: Base class for all oidclogin errors
- DomainError: Business rule violations, rejected sign-in attempts (4xx responses)
- InfrastructureError: System-level failures like storage/network issues (503 responses)

These errors are mapped to HTTP responses by the global exception handler in app.py,
or turned into error-page redirects by the browser-facing auth routes.
"""

from typing import ClassVar


class OidcLoginError(Exception):
    """Base class for all oidclogin errors."""

    default_message: ClassVar[str] = "Authentication failed"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(OidcLoginError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists or version conflict."""


class AuthorizationError(DomainError):
    """Caller not authorized for this operation."""


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(OidcLoginError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Storage backend (database) is unavailable."""


class ExternalServiceError(InfrastructureError):
    """External service (identity provider) is unavailable or failed."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
