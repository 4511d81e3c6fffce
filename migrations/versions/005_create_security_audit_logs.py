"""Create security_audit_logs table.

Revision ID: 005_security_audit_logs
Revises: 004_jobs
Create Date: 2026-09-21

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "005_security_audit_logs"
down_revision: str | None = "004_jobs"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "security_audit_logs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_security_audit_logs_event_type"),
        "security_audit_logs",
        ["event_type"],
    )
    op.create_index(
        op.f("ix_security_audit_logs_created_at"),
        "security_audit_logs",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_security_audit_logs_created_at"), table_name="security_audit_logs"
    )
    op.drop_index(
        op.f("ix_security_audit_logs_event_type"), table_name="security_audit_logs"
    )
    op.drop_table("security_audit_logs")
