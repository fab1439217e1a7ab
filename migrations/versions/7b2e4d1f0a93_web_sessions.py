"""web_sessions table

Revision ID: 7b2e4d1f0a93
Revises: 3f6a1c2d9b7e
Create Date: 2026-10-26 14:03:51.662019

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7b2e4d1f0a93"
down_revision: Union[str, Sequence[str], None] = "3f6a1c2d9b7e"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "web_sessions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_web_sessions_expires_at", "web_sessions", ["expires_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_web_sessions_expires_at", table_name="web_sessions")
    op.drop_table("web_sessions")
