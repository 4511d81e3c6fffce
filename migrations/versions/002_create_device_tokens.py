"""Create device_tokens table for desktop app pairing.

Revision ID: 002_device_tokens
Revises: 001_users
Create Date: 2026-09-14

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_device_tokens"
down_revision: str | None = "001_users"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "device_tokens",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("code", sa.String(length=6), nullable=True),
        sa.Column("access_token", sa.String(length=64), nullable=True),
        sa.Column(
            "is_verified", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("device_name", sa.String(length=100), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index(
        op.f("ix_device_tokens_user_id"), "device_tokens", ["user_id"]
    )
    op.create_index(
        op.f("ix_device_tokens_access_token"),
        "device_tokens",
        ["access_token"],
        unique=True,
    )
    # Sweep scans by expiry
    op.create_index("ix_device_tokens_expires_at", "device_tokens", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_device_tokens_expires_at", table_name="device_tokens")
    op.drop_index(op.f("ix_device_tokens_access_token"), table_name="device_tokens")
    op.drop_index(op.f("ix_device_tokens_user_id"), table_name="device_tokens")
    op.drop_table("device_tokens")
