import logging
import os
import secrets
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource
from typing_extensions import Self

from oidclogin.domain.auth.model.value import DOMAIN_PATTERN

logger = logging.getLogger(__name__)


# =============================================================================
# OpenID Connect Configuration
# =============================================================================


class OidcConfig(BaseModel):
    """OpenID Connect provider settings and sign-in policy toggles.

    Endpoint defaults point at GitHub's OAuth app endpoints.
    """

    authentication_name: str = "OAuth login"  # Caption of the sign-in button
    authorize_url: str = "https://github.com/login/oauth/authorize"
    token_url: str = "https://github.com/login/oauth/access_token"
    userinfo_url: str = "https://api.github.com/user"
    end_session_url: str = ""
    userinfo_id_field: str = "id"  # Userinfo claim holding the subject identifier
    client_id: str = ""
    client_secret: str = ""
    scope: str = ""
    redirect_uri_override: str = ""

    allow_signup: bool = False
    allowed_signup_domains: str = ""  # Newline separated, empty = any domain
    disable_superuser: bool = False
    disable_password_confirmation: bool = False
    disable_direct_initiation: bool = True
    hide_password_login: bool = False
    bypass_two_fa: bool = False
    auto_linking: bool = False
    revoke_on_logout: bool = False

    @field_validator("allowed_signup_domains")
    @classmethod
    def validate_signup_domains(cls, value: str) -> str:
        for domain in value.splitlines():
            if domain and not DOMAIN_PATTERN.match(domain):
                raise ValueError(f"Invalid signup domain: {domain!r}")
        return value

    @property
    def signup_domains(self) -> list[str]:
        """Configured allow-list entries; empty means no restriction."""
        return [d for d in self.allowed_signup_domains.splitlines() if d]

    @property
    def is_configured(self) -> bool:
        return all(
            (
                self.authorize_url,
                self.token_url,
                self.userinfo_url,
                self.client_id,
                self.client_secret,
            )
        )


# =============================================================================
# Application Configuration
# =============================================================================


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by OIDCLOGIN_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        yaml_data = self._load_yaml_config()
        return yaml_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        config_file = os.environ.get("OIDCLOGIN_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Frontend(BaseModel):
    """Pages of the host application the flow redirects to."""

    url: str = "http://localhost:3000"
    home_path: str = "/"
    security_path: str = "/account/security"
    logout_path: str = "/logout"
    error_path: str = "/auth/error"

    def page(self, path: str) -> str:
        return f"{self.url.rstrip('/')}{path}"

    @property
    def home_url(self) -> str:
        return self.page(self.home_path)

    @property
    def security_url(self) -> str:
        return self.page(self.security_path)

    @property
    def logout_url(self) -> str:
        return self.page(self.logout_path)

    @property
    def error_url(self) -> str:
        return self.page(self.error_path)


class Server(BaseModel):
    name: str = "oidclogin"
    version: str = "0.1.0"
    description: str = "Federated sign-in through OpenID Connect"


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///./oidclogin.db"
    echo: bool = False
    auto_migrate: bool = True  # Create tables on startup; use `oidclogin db upgrade` otherwise


class SessionConfig(BaseModel):
    """Session settings.

    The cookie holds only a session id signed with `secret_key`; the session data
    is stored server-side.

    `auth_mode` decides what token the session carries after sign-in:
    "force" issues a fresh random token, "token" reuses the user's stored one.
    """

    secret_key: str = ""  # Empty = random per process, sessions do not survive restarts
    cookie_name: str = "oidclogin_session"
    max_age: int = 14 * 24 * 60 * 60  # Remember-me lifetime in seconds
    https_only: bool = False
    same_site: Literal["lax", "strict", "none"] = "lax"
    auth_mode: Literal["force", "token"] = "force"


class HttpConfig(BaseModel):
    """Timeouts for calls to the identity provider, in seconds."""

    connect_timeout: float = 5.0
    read_timeout: float = 10.0
    write_timeout: float = 5.0
    pool_timeout: float = 5.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    logfire: bool = False  # Instrument FastAPI and httpx with logfire

    @property
    def file(self) -> str | None:
        """Get log file path from OIDCLOGIN_LOG_FILE env var."""
        return os.environ.get("OIDCLOGIN_LOG_FILE")


class Config(BaseSettings):
    server: Server = Server()
    frontend: Frontend = Frontend()
    database: DatabaseConfig = DatabaseConfig()
    session: SessionConfig = SessionConfig()
    http: HttpConfig = HttpConfig()
    logging: LoggingConfig = LoggingConfig()
    oidc: OidcConfig = OidcConfig()

    model_config = {
        "env_prefix": "OIDCLOGIN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows OIDCLOGIN_OIDC__CLIENT_ID override
    }

    @model_validator(mode="after")
    def ensure_session_secret(self) -> Self:
        if not self.session.secret_key:
            logger.warning("session.secret_key is not set; using a random per-process key")
            self.session = self.session.model_copy(
                update={"secret_key": secrets.token_urlsafe(32)}
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority (highest to lowest): init kwargs, env vars, .env, YAML file, file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger. Called once when the app is created."""
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
