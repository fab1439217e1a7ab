"""OpenID Connect identity provider adapter."""

import logging
from typing import Any

import httpx

from oidclogin.config import OidcConfig
from oidclogin.domain.auth.error import InvalidProviderResponse, ProviderUnreachable
from oidclogin.domain.auth.model.value import OIDC_PROVIDER
from oidclogin.domain.auth.port.identity_provider import (
    IdentityInfo,
    IdentityProvider,
    ProviderTokens,
)
from oidclogin.util.url import with_query_params

logger = logging.getLogger(__name__)


def _subject_to_str(value: Any) -> str | None:
    """Normalize a subject claim. Providers like GitHub send numeric ids."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


class OidcIdentityProvider(IdentityProvider):
    """IdentityProvider for any authorization-code provider configured by URL.

    Endpoints, client credentials and the subject claim name all come from
    OidcConfig. Network failures become ProviderUnreachable; non-2xx answers and
    unusable bodies become InvalidProviderResponse.
    """

    def __init__(
        self,
        config: OidcConfig,
        http_client: httpx.AsyncClient,
        provider_name: str = OIDC_PROVIDER,
    ) -> None:
        self._config = config
        self._http = http_client
        self._provider_name = provider_name

    @property
    def provider_name(self) -> str:
        return self._provider_name

    def get_authorization_url(self, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self._config.client_id,
            "scope": self._config.scope,
            "redirect_uri": redirect_uri,
            "state": state,
            "response_type": "code",
        }
        return with_query_params(self._config.authorize_url, params)

    async def exchange_code(self, code: str, redirect_uri: str, state: str) -> ProviderTokens:
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
            "state": state,
        }
        response = await self._send(
            "POST",
            self._config.token_url,
            "token exchange",
            data=data,
            headers={"Accept": "application/json"},
        )
        token_data = self._json_object(response, "token exchange")

        access_token = token_data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            logger.error("Token response without access_token: keys=%s", sorted(token_data))
            raise InvalidProviderResponse("Token response did not contain an access token")

        return ProviderTokens(
            access_token=access_token,
            id_token=token_data.get("id_token") or None,
            refresh_token=token_data.get("refresh_token") or None,
        )

    async def fetch_identity(self, tokens: ProviderTokens) -> IdentityInfo:
        response = await self._send(
            "GET",
            self._config.userinfo_url,
            "userinfo",
            headers={
                "Authorization": f"Bearer {tokens.access_token}",
                "Accept": "application/json",
            },
        )
        userinfo = self._json_object(response, "userinfo")

        field = self._config.userinfo_id_field
        subject = _subject_to_str(userinfo.get(field))
        if subject is None:
            logger.error("Userinfo response without usable %r claim", field)
            raise InvalidProviderResponse(f"Userinfo response did not contain '{field}'")

        email = userinfo.get("email")
        return IdentityInfo(
            provider=self._provider_name,
            external_id=subject,
            email=email if isinstance(email, str) and email else None,
            raw_data=userinfo,
        )

    def end_session_url(
        self, id_token_hint: str | None, post_logout_redirect_uri: str
    ) -> str | None:
        if not self._config.end_session_url:
            return None
        params: dict[str, str] = {}
        if id_token_hint:
            params["id_token_hint"] = id_token_hint
        params["post_logout_redirect_uri"] = post_logout_redirect_uri
        return with_query_params(self._config.end_session_url, params)

    async def revoke(self, refresh_token: str) -> None:
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "refresh_token": refresh_token,
        }
        response = await self._send("POST", self._config.end_session_url, "revocation", data=data)
        if response.status_code != 204:
            logger.error(
                "Token revocation failed: status=%d, body=%s",
                response.status_code,
                response.text,
            )
            raise InvalidProviderResponse(f"Token revocation failed: HTTP {response.status_code}")

    async def _send(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.exception("Identity provider %s request failed: %s", action, e)
            raise ProviderUnreachable(f"Identity provider {action} request failed") from e

    def _json_object(self, response: httpx.Response, action: str) -> dict[str, Any]:
        if not response.is_success:
            logger.error(
                "Identity provider %s failed: status=%d, body=%s",
                action,
                response.status_code,
                response.text,
            )
            raise InvalidProviderResponse(
                f"Identity provider {action} failed: HTTP {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as e:
            logger.error("Identity provider %s returned invalid JSON: %s", action, response.text)
            raise InvalidProviderResponse(
                f"Identity provider {action} returned invalid JSON"
            ) from e
        if not isinstance(data, dict):
            raise InvalidProviderResponse(f"Identity provider {action} returned a non-object")
        return data
