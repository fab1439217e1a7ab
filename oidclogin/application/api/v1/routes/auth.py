"""Authentication routes for the OpenID Connect sign-in flow."""

import logging
from typing import Annotated

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Form, Query, Request, Response
from fastapi.responses import RedirectResponse

from oidclogin.config import Config
from oidclogin.domain.auth.command.login import (
    CompleteOAuth,
    CompleteOAuthHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from oidclogin.domain.auth.command.logout import Logout, LogoutHandler
from oidclogin.domain.auth.command.unlink import Unlink, UnlinkHandler
from oidclogin.domain.auth.model.flow import CallbackOutcome
from oidclogin.domain.auth.model.value import OIDC_PROVIDER
from oidclogin.domain.auth.query.get_link_status import (
    GetLinkStatus,
    GetLinkStatusHandler,
    GetPasswordConfirmation,
    GetPasswordConfirmationHandler,
    LinkStatus,
    PasswordConfirmation,
)
from oidclogin.domain.auth.query.get_login_options import (
    GetLoginOptions,
    GetLoginOptionsHandler,
    LoginOptions,
)
from oidclogin.domain.auth.query.get_session import (
    CurrentSession,
    GetCurrentSession,
    GetCurrentSessionHandler,
)
from oidclogin.domain.shared.error import OidcLoginError
from oidclogin.util.url import with_query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"], route_class=DishkaRoute)


def _callback_url(request: Request, config: Config) -> str:
    """Redirect URI registered with the provider; must be identical on both legs."""
    if config.oidc.redirect_uri_override:
        return config.oidc.redirect_uri_override
    return with_query_params(
        str(request.url_for("handle_oidc_callback")), {"provider": OIDC_PROVIDER}
    )


def _error_redirect(config: Config, code: str, description: str) -> RedirectResponse:
    url = with_query_params(
        config.frontend.error_url,
        {"error": code, "error_description": description},
    )
    return RedirectResponse(url=url, status_code=302)


@router.api_route("/oidc/signin", methods=["GET", "POST"])
async def initiate_signin(
    request: Request,
    config: FromDishka[Config],
    handler: FromDishka[InitiateLoginHandler],
    form_nonce: Annotated[str | None, Form()] = None,
) -> Response:
    """Start the sign-in flow by redirecting to the provider's authorization page.

    POST needs the form nonce from `/auth/oidc/login-options`. GET is only
    accepted when direct initiation is enabled.
    """
    try:
        result = await handler.run(
            InitiateLogin(
                method=request.method,
                form_nonce=form_nonce,
                redirect_uri=_callback_url(request, config),
            )
        )
    except OidcLoginError as e:
        logger.warning("Sign-in not started: %s (%s)", e.code, e.message)
        return _error_redirect(config, e.code, e.message)

    logger.info("Sign-in initiated, redirecting to identity provider")
    return RedirectResponse(url=result.authorization_url, status_code=302)


@router.get("/oidc/callback")
async def handle_oidc_callback(
    request: Request,
    config: FromDishka[Config],
    handler: FromDishka[CompleteOAuthHandler],
    provider: Annotated[str | None, Query()] = None,
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
    error_description: Annotated[str | None, Query()] = None,
) -> Response:
    """Finish the flow when the provider redirects back.

    302 to the home page after sign-in, 302 to the security page after linking,
    204 after re-confirming the identity of the signed-in user.
    """
    if error:
        logger.warning("Identity provider returned error: %s - %s", error, error_description)
        return _error_redirect(config, error, error_description or "Authentication failed")

    try:
        result = await handler.run(
            CompleteOAuth(
                provider=provider or "",
                code=code or "",
                state=state,
                redirect_uri=_callback_url(request, config),
            )
        )
    except OidcLoginError as e:
        logger.warning("Sign-in failed: %s (%s)", e.code, e.message)
        return _error_redirect(config, e.code, e.message)

    logger.info("Callback complete: outcome=%s, login=%s", result.outcome, result.login)
    if result.outcome is CallbackOutcome.REAUTHENTICATED:
        return Response(status_code=204)
    if result.outcome is CallbackOutcome.LINKED:
        return RedirectResponse(url=config.frontend.security_url, status_code=302)
    return RedirectResponse(url=config.frontend.home_url, status_code=302)


@router.api_route("/oidc/unlink", methods=["GET", "POST"])
async def unlink(
    request: Request,
    config: FromDishka[Config],
    handler: FromDishka[UnlinkHandler],
    form_nonce: Annotated[str | None, Form()] = None,
) -> Response:
    """Remove the signed-in user's provider link, then go back to the security page."""
    await handler.run(Unlink(method=request.method, form_nonce=form_nonce))
    return RedirectResponse(url=config.frontend.security_url, status_code=302)


@router.get("/oidc/login-options", response_model=LoginOptions)
async def get_login_options(handler: FromDishka[GetLoginOptionsHandler]) -> LoginOptions:
    """Data for the provider button on the sign-in page."""
    return await handler.run(GetLoginOptions())


@router.get("/oidc/settings", response_model=LinkStatus)
async def get_link_status(handler: FromDishka[GetLinkStatusHandler]) -> LinkStatus:
    """Link status of the signed-in user."""
    return await handler.run(GetLinkStatus())


@router.get("/oidc/confirm-password", response_model=PasswordConfirmation)
async def get_password_confirmation(
    handler: FromDishka[GetPasswordConfirmationHandler],
) -> PasswordConfirmation:
    """Whether to offer re-confirmation through the provider instead of a password."""
    return await handler.run(GetPasswordConfirmation())


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(config: FromDishka[Config], handler: FromDishka[LogoutHandler]) -> Response:
    """Clear the session, passing through the provider's end-session endpoint if needed."""
    result = await handler.run(Logout())
    return RedirectResponse(
        url=result.end_session_url or config.frontend.logout_url, status_code=302
    )


@router.get("/me", response_model=CurrentSession)
async def get_me(handler: FromDishka[GetCurrentSessionHandler]) -> CurrentSession:
    return await handler.run(GetCurrentSession())
