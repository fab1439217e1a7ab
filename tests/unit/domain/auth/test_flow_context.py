"""Unit tests for FlowContext."""

import pytest

from oidclogin.domain.auth.model.flow import (
    REMOTE_AUTH_KEY,
    STATE_KEY,
    FlowContext,
)
from oidclogin.domain.auth.model.identity import Anonymous, Principal
from oidclogin.domain.shared.error import InvalidStateError


class TestState:
    def test_issue_state_stores_32_hex_chars(self):
        session: dict = {}
        ctx = FlowContext(session)

        state = ctx.issue_state()

        assert session[STATE_KEY] == state
        assert len(state) == 32
        int(state, 16)

    def test_issue_state_replaces_previous(self):
        ctx = FlowContext({})
        first = ctx.issue_state()
        second = ctx.issue_state()

        assert first != second
        assert ctx.state == second

    def test_consume_state_matches_once(self):
        ctx = FlowContext({})
        state = ctx.issue_state()

        assert ctx.consume_state(state) is True
        assert ctx.consume_state(state) is False

    def test_consume_state_deletes_token_on_mismatch(self):
        session: dict = {}
        ctx = FlowContext(session)
        state = ctx.issue_state()

        assert ctx.consume_state("wrong") is False
        assert STATE_KEY not in session
        assert ctx.consume_state(state) is False

    @pytest.mark.parametrize("received", [None, ""])
    def test_consume_state_rejects_missing_value(self, received):
        ctx = FlowContext({})
        ctx.issue_state()

        assert ctx.consume_state(received) is False

    def test_consume_state_without_stored_token(self):
        assert FlowContext({}).consume_state("anything") is False


class TestFormNonce:
    def test_nonce_is_stable_within_session(self):
        ctx = FlowContext({})

        assert ctx.form_nonce() == ctx.form_nonce()

    def test_verify_form_nonce(self):
        ctx = FlowContext({})
        nonce = ctx.form_nonce()

        assert ctx.verify_form_nonce(nonce) is True
        assert ctx.verify_form_nonce("other") is False
        assert ctx.verify_form_nonce(None) is False

    def test_verify_without_issued_nonce(self):
        assert FlowContext({}).verify_form_nonce("x") is False


class TestRemoteAuthentication:
    def test_mark_and_clear(self):
        session: dict = {}
        ctx = FlowContext(session)

        ctx.mark_remote_authenticated(id_token="id-tok", refresh_token="ref-tok")

        assert ctx.authenticated_via_remote is True
        assert ctx.id_token == "id-tok"
        assert ctx.refresh_token == "ref-tok"

        ctx.clear_remote_authenticated()

        assert ctx.authenticated_via_remote is False
        assert ctx.id_token is None
        assert REMOTE_AUTH_KEY not in session

    def test_mark_without_tokens_drops_stale_ones(self):
        ctx = FlowContext({})
        ctx.mark_remote_authenticated(id_token="old")

        ctx.mark_remote_authenticated()

        assert ctx.id_token is None


class TestHostSession:
    def test_identity_anonymous_without_login(self):
        assert FlowContext({}).identity() == Anonymous()

    def test_identity_principal_from_session(self):
        ctx = FlowContext({"login": "alice", "superuser": True})

        assert ctx.identity() == Principal(login="alice", superuser=True)

    def test_begin_session_replaces_identity(self):
        session = {"login": "old", "password_confirmed": True, "two_factor_verified": True}
        ctx = FlowContext(session)

        ctx.begin_session("alice", "tok", superuser=False)

        assert session["login"] == "alice"
        assert session["token_auth"] == "tok"
        assert ctx.password_confirmed is False
        assert ctx.two_factor_verified is False
        assert ctx.is_established is True

    def test_begin_session_twice_rejected(self):
        ctx = FlowContext({})
        ctx.begin_session("alice", "tok", superuser=False)

        with pytest.raises(InvalidStateError):
            ctx.begin_session("bob", "tok2", superuser=False)

    def test_begin_session_keeps_flow_keys(self):
        session: dict = {}
        ctx = FlowContext(session)
        ctx.mark_remote_authenticated(id_token="id-tok")

        ctx.begin_session("alice", "tok", superuser=False)

        assert ctx.authenticated_via_remote is True
        assert ctx.id_token == "id-tok"

    def test_clear(self):
        session = {"login": "alice"}
        FlowContext(session).clear()

        assert session == {}
