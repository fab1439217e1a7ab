"""Global test fixtures."""

import os

import pytest

from oidclogin.config import Config, DatabaseConfig, Frontend, OidcConfig, SessionConfig

# Set before any test module builds a Config from the environment
os.environ.setdefault("OIDCLOGIN_SESSION__SECRET_KEY", "test-session-secret-for-unit-tests")


def make_oidc_config(**overrides) -> OidcConfig:
    """A fully configured provider pointing at a fake IdP."""
    values = {
        "authorize_url": "https://idp.example/authorize",
        "token_url": "https://idp.example/token",
        "userinfo_url": "https://idp.example/userinfo",
        "client_id": "client-1",
        "client_secret": "secret-1",
        "scope": "openid email",
        "userinfo_id_field": "sub",
    }
    values.update(overrides)
    return OidcConfig(**values)


@pytest.fixture
def oidc_config() -> OidcConfig:
    return make_oidc_config()


@pytest.fixture
def app_config() -> Config:
    return Config(
        database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:"),
        session=SessionConfig(secret_key="test-session-secret-for-unit-tests"),
        frontend=Frontend(url="http://app.example"),
        oidc=make_oidc_config(allow_signup=True),
    )
