"""Errors raised by the sign-in flow.

Each class name doubles as its `code`, which the browser routes pass to the
frontend error page and the JSON handler returns as-is.
"""

from oidclogin.domain.shared.error import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainError,
    ExternalServiceError,
    NotFoundError,
)


class NotConfigured(ConfigurationError):
    default_message = "OpenID Connect sign-in is not configured"


class MethodNotAllowed(DomainError):
    default_message = "HTTP method not allowed for this action"


class InvalidOrMissingCsrfNonce(AuthorizationError):
    default_message = "Form nonce is missing or invalid"


class StateMismatch(AuthorizationError):
    default_message = "Sign-in state does not match; restart the sign-in"


class UnknownProvider(NotFoundError):
    default_message = "Unknown identity provider"


class InvalidProviderResponse(ExternalServiceError):
    default_message = "Identity provider returned an unusable response"


class ProviderUnreachable(ExternalServiceError):
    default_message = "Identity provider could not be reached"


class UserNotFound(NotFoundError):
    default_message = "No local user is linked to this remote identity"


class SignupDisabled(UserNotFound):
    default_message = "Signing up through the identity provider is disabled"


class UserNotFoundAndNoEmail(UserNotFound):
    default_message = "Identity provider did not return an e-mail address to sign up with"


class AllowedSignupDomainsDenied(AuthorizationError):
    default_message = "E-mail domain is not allowed to sign up"


class SuperUserOauthDisabled(AuthorizationError):
    default_message = "Superusers must sign in with their password"


class AlreadyLinkedToDifferentAccount(ConflictError):
    default_message = "Remote identity is linked to a different account"
