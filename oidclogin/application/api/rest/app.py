import logging
from contextlib import asynccontextmanager

import httpx
import logfire
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from oidclogin.application.api.rest.session import ServerSessionMiddleware
from oidclogin.application.api.v1.errors import map_error
from oidclogin.application.api.v1.routes import auth, health
from oidclogin.application.di import create_container
from oidclogin.config import Config, configure_logging
from oidclogin.domain.auth.model.flow import LOGIN_KEY
from oidclogin.domain.auth.port.session_store import SessionStore
from oidclogin.domain.shared.error import OidcLoginError
from oidclogin.infrastructure.auth.di import create_http_client
from oidclogin.infrastructure.persistence.migrate import create_schema
from oidclogin.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.dishka_container
    config = await container.get(Config)

    if config.database.auto_migrate:
        engine = await container.get(AsyncEngine)
        await create_schema(engine)

    purged = await (await container.get(SessionStore)).purge_expired()
    if purged:
        logger.info("Purged %d expired sessions", purged)

    yield

    await container.close()
    if app.state.owns_http_client:
        await app.state.http_client.aclose()


def create_app(
    config: Config | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        config: Settings; read from env/.env/YAML when omitted
        http_client: Client for identity provider calls; one with configured
            timeouts is created (and closed on shutdown) when omitted
    """
    if config is None:
        config = Config()  # type: ignore[call-arg]

    configure_logging(config.logging)
    logger.info("Starting %s v%s", config.server.name, config.server.version)

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    app_instance.state.owns_http_client = http_client is None
    if http_client is None:
        http_client = create_http_client(config)
    app_instance.state.http_client = http_client

    if config.logging.logfire:
        logfire.configure(service_name=config.server.name, send_to_logfire="if-token-present")
        logfire.instrument_httpx(http_client)
        logfire.instrument_fastapi(app_instance)

    container = create_container(config, http_client)
    setup_dishka(container, app_instance)

    # Added after the container middleware so it runs first: the session is
    # loaded before any flow state is read and saved after the unit of work
    # has committed. Signing in issues a new session id.
    app_instance.add_middleware(
        ServerSessionMiddleware, config=config.session, rotate_on=(LOGIN_KEY,)
    )

    app_instance.include_router(health.router, prefix="/api/v1")
    app_instance.include_router(auth.router, prefix="/api/v1")

    @app_instance.exception_handler(OidcLoginError)
    async def oidclogin_error_handler(request: Request, exc: OidcLoginError):
        http_exc = map_error(exc)
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app_instance
