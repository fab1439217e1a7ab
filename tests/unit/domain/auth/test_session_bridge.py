"""Unit tests for SessionBridge."""

import pytest

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.model.flow import FlowContext
from oidclogin.domain.auth.model.identity import Principal
from oidclogin.domain.auth.model.user import LocalUser
from oidclogin.domain.auth.service.session import SessionBridge
from oidclogin.domain.shared.error import InvalidStateError


class TestEstablish:
    def test_force_mode_issues_fresh_token(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({})

        bridge.establish(ctx, LocalUser(login="alice", token_auth="stored"))

        assert ctx.login == "alice"
        assert ctx.token_auth is not None
        assert ctx.token_auth != "stored"
        assert len(ctx.token_auth) == 32

    def test_force_mode_tokens_differ_per_sign_in(self):
        bridge = SessionBridge(_config=OidcConfig())
        first, second = FlowContext({}), FlowContext({})

        bridge.establish(first, LocalUser(login="alice"))
        bridge.establish(second, LocalUser(login="alice"))

        assert first.token_auth != second.token_auth

    def test_token_mode_reuses_stored_token(self):
        bridge = SessionBridge(_config=OidcConfig(), _auth_mode="token")
        ctx = FlowContext({})

        bridge.establish(ctx, LocalUser(login="alice", token_auth="stored"))

        assert ctx.token_auth == "stored"

    def test_token_mode_without_stored_token_falls_back_to_fresh(self):
        bridge = SessionBridge(_config=OidcConfig(), _auth_mode="token")
        ctx = FlowContext({})

        bridge.establish(ctx, LocalUser(login="alice"))

        assert ctx.token_auth

    def test_records_superuser_flag(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({})

        bridge.establish(ctx, LocalUser(login="root", superuser_access=True))

        assert ctx.identity() == Principal(login="root", superuser=True)

    @pytest.mark.parametrize("bypass", [True, False])
    def test_two_factor_bypass(self, bypass):
        bridge = SessionBridge(_config=OidcConfig(bypass_two_fa=bypass))
        ctx = FlowContext({})

        bridge.establish(ctx, LocalUser(login="alice"))

        assert ctx.two_factor_verified is bypass

    def test_replaces_previous_identity(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({"login": "bob", "password_confirmed": True})

        bridge.establish(ctx, LocalUser(login="alice"))

        assert ctx.login == "alice"
        assert ctx.password_confirmed is False

    def test_only_once_per_request(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({})
        bridge.establish(ctx, LocalUser(login="alice"))

        with pytest.raises(InvalidStateError) as exc_info:
            bridge.establish(ctx, LocalUser(login="bob"))

        assert exc_info.value.code == "session_already_established"
        assert ctx.login == "alice"


class TestPasswordConfirmation:
    def test_required_by_default(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({"login": "alice"})
        ctx.mark_remote_authenticated()

        assert bridge.requires_password_confirmation(ctx) is True

    def test_skipped_for_remote_sessions_when_disabled(self):
        bridge = SessionBridge(_config=OidcConfig(disable_password_confirmation=True))
        ctx = FlowContext({"login": "alice"})
        ctx.mark_remote_authenticated()

        assert bridge.requires_password_confirmation(ctx) is False

    def test_still_required_for_password_sessions_when_disabled(self):
        bridge = SessionBridge(_config=OidcConfig(disable_password_confirmation=True))

        assert bridge.requires_password_confirmation(FlowContext({"login": "alice"})) is True

    def test_not_required_after_provider_reconfirmation(self):
        bridge = SessionBridge(_config=OidcConfig())
        ctx = FlowContext({"login": "alice"})
        ctx.confirm_password()

        assert bridge.requires_password_confirmation(ctx) is False
