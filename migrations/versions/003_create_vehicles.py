"""Create trucks and trailers tables.

Revision ID: 003_vehicles
Revises: 002_device_tokens
Create Date: 2026-09-15

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003_vehicles"
down_revision: str | None = "002_device_tokens"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "trucks",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("game", sa.String(length=10), nullable=False),
        sa.Column("brand", sa.String(length=50), nullable=False),
        sa.Column("model", sa.String(length=50), nullable=False),
        sa.Column("custom_name", sa.String(length=100), nullable=True),
        sa.Column("total_jobs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_km", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_revenue",
            sa.Numeric(precision=14, scale=2),
            nullable=False,
            server_default="0",
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("game IN ('ets2', 'ats')", name="ck_trucks_game"),
    )
    op.create_index(op.f("ix_trucks_user_id"), "trucks", ["user_id"])

    op.create_table(
        "trailers",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("game", sa.String(length=10), nullable=False),
        sa.Column("trailer_type", sa.String(length=50), nullable=False),
        sa.Column("custom_name", sa.String(length=100), nullable=True),
        sa.Column("total_jobs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_km", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("game IN ('ets2', 'ats')", name="ck_trailers_game"),
    )
    op.create_index(op.f("ix_trailers_user_id"), "trailers", ["user_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_trailers_user_id"), table_name="trailers")
    op.drop_table("trailers")
    op.drop_index(op.f("ix_trucks_user_id"), table_name="trucks")
    op.drop_table("trucks")
