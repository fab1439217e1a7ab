"""Unit tests for error-to-HTTP mapping."""

import pytest

from oidclogin.application.api.v1.errors import map_error
from oidclogin.domain.auth.error import (
    AllowedSignupDomainsDenied,
    AlreadyLinkedToDifferentAccount,
    InvalidOrMissingCsrfNonce,
    InvalidProviderResponse,
    MethodNotAllowed,
    NotConfigured,
    ProviderUnreachable,
    SignupDisabled,
    StateMismatch,
    UnknownProvider,
)
from oidclogin.domain.shared.error import (
    AuthorizationError,
    DomainError,
    InvalidStateError,
    StorageUnavailableError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error, status",
    [
        (StateMismatch(), 403),
        (InvalidOrMissingCsrfNonce(), 403),
        (AllowedSignupDomainsDenied(), 403),
        (UnknownProvider(), 404),
        (SignupDisabled(), 404),
        (AlreadyLinkedToDifferentAccount(), 409),
        (InvalidStateError("again", code="session_already_established"), 409),
        (MethodNotAllowed(), 405),
        (ValidationError("bad"), 422),
        (NotConfigured(), 503),
        (InvalidProviderResponse(), 503),
        (ProviderUnreachable(), 503),
        (StorageUnavailableError(), 503),
        (DomainError(), 400),
    ],
)
def test_status_codes(error, status):
    assert map_error(error).status_code == status


def test_missing_session_is_401():
    error = AuthorizationError("Authentication required", code="missing_session")

    assert map_error(error).status_code == 401


def test_detail_carries_code_and_message():
    detail = map_error(StateMismatch("State did not match")).detail

    assert detail == {"code": "StateMismatch", "message": "State did not match"}


def test_default_message():
    assert map_error(SignupDisabled()).detail["message"] == SignupDisabled.default_message


def test_validation_field():
    detail = map_error(ValidationError("bad", field="email")).detail

    assert detail["field"] == "email"
