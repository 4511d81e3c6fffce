"""Create jobs table.

Revision ID: 004_jobs
Revises: 003_vehicles
Create Date: 2026-09-15

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "004_jobs"
down_revision: str | None = "003_vehicles"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "jobs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("game", sa.String(length=10), nullable=False),
        sa.Column("server", sa.String(length=100), nullable=True),
        sa.Column("cargo", sa.String(length=200), nullable=False),
        sa.Column("source_city", sa.String(length=100), nullable=False),
        sa.Column("destination_city", sa.String(length=100), nullable=False),
        sa.Column("distance_km", sa.Integer(), nullable=False),
        sa.Column("revenue", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            "damage_percent",
            sa.Numeric(precision=5, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("truck_id", sa.UUID(), nullable=True),
        sa.Column("trailer_id", sa.UUID(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="pending"
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_telemetry_job", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column(
            "telemetry_data",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["truck_id"], ["trucks.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["trailer_id"], ["trailers.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("game IN ('ets2', 'ats')", name="ck_jobs_game"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_jobs_status"
        ),
        sa.CheckConstraint("distance_km >= 0", name="ck_jobs_distance_km"),
        sa.CheckConstraint(
            "damage_percent >= 0 AND damage_percent <= 100",
            name="ck_jobs_damage_percent",
        ),
    )
    op.create_index(op.f("ix_jobs_user_id"), "jobs", ["user_id"])
    op.create_index(op.f("ix_jobs_truck_id"), "jobs", ["truck_id"])
    op.create_index(op.f("ix_jobs_status"), "jobs", ["status"])


def downgrade() -> None:
    op.drop_index(op.f("ix_jobs_status"), table_name="jobs")
    op.drop_index(op.f("ix_jobs_truck_id"), table_name="jobs")
    op.drop_index(op.f("ix_jobs_user_id"), table_name="jobs")
    op.drop_table("jobs")
