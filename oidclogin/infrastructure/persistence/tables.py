"""SQLAlchemy table definitions - dialect-agnostic (works with SQLite and PostgreSQL)."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    UniqueConstraint,
    false,
)

metadata = MetaData()


# ============================================================================
# USERS TABLE (local accounts, owned by the host application)
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("login", String(100), primary_key=True),
    Column("password", String(255), nullable=False),  # Pre-hashed
    Column("email", String(255), nullable=True),
    Column("superuser_access", Boolean, nullable=False, server_default=false()),
    Column("token_auth", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


# ============================================================================
# ACCOUNT LINK TABLE
# ============================================================================
account_link_table = Table(
    "account_link",
    metadata,
    Column(
        "user",
        String(100),
        ForeignKey("users.login", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("provider_user", String(255), nullable=False),  # Remote subject identifier
    Column("provider", String(50), nullable=False),  # "oidc"
    Column("date_connected", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("provider_user", "provider", name="pk_account_link"),
    UniqueConstraint("user", "provider", name="uq_account_link_user_provider"),
)


# ============================================================================
# WEB SESSIONS TABLE (server-side session data; the cookie holds only the id)
# ============================================================================
web_sessions_table = Table(
    "web_sessions",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("data", JSON, nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False),
    Index("idx_web_sessions_expires_at", "expires_at"),
)
