"""Unit tests for OidcIdentityProvider against a mocked identity provider."""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.error import InvalidProviderResponse, ProviderUnreachable
from oidclogin.domain.auth.port.identity_provider import ProviderTokens
from oidclogin.infrastructure.auth.oidc import OidcIdentityProvider

REDIRECT_URI = "http://app.example/api/v1/auth/oidc/callback?provider=oidc"


def make_config(**overrides) -> OidcConfig:
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


class FakeIdp:
    """Routes requests to canned responses and records what was sent."""

    def __init__(self, routes: dict[str, httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes[request.url.path]


def make_provider(
    routes: dict[str, httpx.Response], **config
) -> tuple[OidcIdentityProvider, FakeIdp]:
    idp = FakeIdp(routes)
    client = httpx.AsyncClient(transport=httpx.MockTransport(idp))
    return OidcIdentityProvider(config=make_config(**config), http_client=client), idp


def form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestAuthorizationUrl:
    def test_carries_client_scope_redirect_and_state(self):
        provider, _ = make_provider({})

        url = provider.get_authorization_url(state="s1", redirect_uri=REDIRECT_URI)

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://idp.example/authorize"
        assert {k: v[0] for k, v in parse_qs(parts.query).items()} == {
            "client_id": "client-1",
            "scope": "openid email",
            "redirect_uri": REDIRECT_URI,
            "state": "s1",
            "response_type": "code",
        }

    def test_keeps_existing_query(self):
        provider, _ = make_provider(
            {}, authorize_url="https://idp.example/authorize?prompt=login"
        )

        query = parse_qs(urlsplit(provider.get_authorization_url("s1", REDIRECT_URI)).query)

        assert query["prompt"] == ["login"]
        assert query["state"] == ["s1"]


class TestExchangeCode:
    @pytest.mark.asyncio
    async def test_posts_form_and_returns_tokens(self):
        provider, idp = make_provider(
            {
                "/token": httpx.Response(
                    200,
                    json={"access_token": "T", "id_token": "ID", "refresh_token": "R"},
                )
            }
        )

        tokens = await provider.exchange_code("C", REDIRECT_URI, "s1")

        assert tokens == ProviderTokens(access_token="T", id_token="ID", refresh_token="R")
        request = idp.requests[0]
        assert request.method == "POST"
        assert request.headers["accept"] == "application/json"
        assert form(request) == {
            "client_id": "client-1",
            "client_secret": "secret-1",
            "code": "C",
            "redirect_uri": REDIRECT_URI,
            "grant_type": "authorization_code",
            "state": "s1",
        }

    @pytest.mark.asyncio
    async def test_access_token_only(self):
        provider, _ = make_provider({"/token": httpx.Response(200, json={"access_token": "T"})})

        tokens = await provider.exchange_code("C", REDIRECT_URI, "s1")

        assert tokens.id_token is None
        assert tokens.refresh_token is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"token_type": "bearer"}),
            httpx.Response(200, json={"access_token": ""}),
            httpx.Response(200, json={"access_token": 123}),
            httpx.Response(200, json=["access_token"]),
            httpx.Response(200, text="access_token=T&token_type=bearer"),
            httpx.Response(400, json={"error": "invalid_grant"}),
            httpx.Response(500, text="oops"),
        ],
    )
    async def test_unusable_response(self, response):
        provider, _ = make_provider({"/token": response})

        with pytest.raises(InvalidProviderResponse):
            await provider.exchange_code("C", REDIRECT_URI, "s1")

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        client = AsyncMock(spec=httpx.AsyncClient)
        client.request.side_effect = httpx.ConnectError("refused")
        provider = OidcIdentityProvider(config=make_config(), http_client=client)

        with pytest.raises(ProviderUnreachable):
            await provider.exchange_code("C", REDIRECT_URI, "s1")

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = AsyncMock(spec=httpx.AsyncClient)
        client.request.side_effect = httpx.ReadTimeout("slow")
        provider = OidcIdentityProvider(config=make_config(), http_client=client)

        with pytest.raises(ProviderUnreachable):
            await provider.exchange_code("C", REDIRECT_URI, "s1")


class TestFetchIdentity:
    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        provider, idp = make_provider(
            {"/userinfo": httpx.Response(200, json={"sub": "42", "email": "u@x.com"})}
        )

        info = await provider.fetch_identity(ProviderTokens(access_token="T"))

        assert info.provider == "oidc"
        assert info.external_id == "42"
        assert info.email == "u@x.com"
        assert idp.requests[0].method == "GET"
        assert idp.requests[0].headers["authorization"] == "Bearer T"

    @pytest.mark.asyncio
    async def test_numeric_subject_is_stringified(self):
        provider, _ = make_provider(
            {"/userinfo": httpx.Response(200, json={"id": 583231, "login": "octocat"})},
            userinfo_id_field="id",
        )

        info = await provider.fetch_identity(ProviderTokens(access_token="T"))

        assert info.external_id == "583231"
        assert info.email is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"email": "u@x.com"},
            {"sub": ""},
            {"sub": None},
            {"sub": True},
            {"sub": {"nested": "42"}},
        ],
    )
    async def test_missing_or_unusable_subject(self, body):
        provider, _ = make_provider({"/userinfo": httpx.Response(200, json=body)})

        with pytest.raises(InvalidProviderResponse):
            await provider.fetch_identity(ProviderTokens(access_token="T"))

    @pytest.mark.asyncio
    async def test_non_string_email_ignored(self):
        provider, _ = make_provider(
            {"/userinfo": httpx.Response(200, json={"sub": "42", "email": ["u@x.com"]})}
        )

        info = await provider.fetch_identity(ProviderTokens(access_token="T"))

        assert info.email is None

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        provider, _ = make_provider({"/userinfo": httpx.Response(401, text="bad token")})

        with pytest.raises(InvalidProviderResponse):
            await provider.fetch_identity(ProviderTokens(access_token="T"))


class TestEndSession:
    def test_not_configured(self):
        provider, _ = make_provider({})

        assert provider.end_session_url("ID", "http://app.example/logout") is None

    def test_with_id_token_hint(self):
        provider, _ = make_provider({}, end_session_url="https://idp.example/logout")

        url = provider.end_session_url("ID", "http://app.example/logout")

        assert parse_qs(urlsplit(url).query) == {
            "id_token_hint": ["ID"],
            "post_logout_redirect_uri": ["http://app.example/logout"],
        }

    def test_without_id_token_hint(self):
        provider, _ = make_provider({}, end_session_url="https://idp.example/logout")

        url = provider.end_session_url(None, "http://app.example/logout")

        assert "id_token_hint" not in parse_qs(urlsplit(url).query)

    @pytest.mark.asyncio
    async def test_revoke_accepts_204(self):
        provider, idp = make_provider(
            {"/logout": httpx.Response(204)}, end_session_url="https://idp.example/logout"
        )

        await provider.revoke("R")

        assert form(idp.requests[0]) == {
            "client_id": "client-1",
            "client_secret": "secret-1",
            "refresh_token": "R",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 400, 500])
    async def test_revoke_rejects_other_status(self, status):
        provider, _ = make_provider(
            {"/logout": httpx.Response(status)}, end_session_url="https://idp.example/logout"
        )

        with pytest.raises(InvalidProviderResponse):
            await provider.revoke("R")
