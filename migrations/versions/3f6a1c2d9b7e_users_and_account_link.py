"""users and account_link tables

Revision ID: 3f6a1c2d9b7e
Revises:
Create Date: 2026-10-19 10:12:44.201733

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f6a1c2d9b7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # USERS
    op.create_table(
        "users",
        sa.Column("login", sa.String(100), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("superuser_access", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("token_auth", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("login"),
    )

    # ACCOUNT LINK
    op.create_table(
        "account_link",
        sa.Column("user", sa.String(100), nullable=False),
        sa.Column("provider_user", sa.String(255), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("date_connected", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user"], ["users.login"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("provider_user", "provider", name="pk_account_link"),
        sa.UniqueConstraint("user", "provider", name="uq_account_link_user_provider"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("account_link")
    op.drop_table("users")
