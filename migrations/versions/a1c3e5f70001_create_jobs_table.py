"""create jobs table for background processing

Revision ID: a1c3e5f70001
Revises:
Create Date: 2026-10-19 09:12:31.204118

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1c3e5f70001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "jobs",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("type", sa.Text, nullable=False, comment="Job type identifier"),
        sa.Column("payload", sa.JSON, nullable=False, comment="Opaque job payload"),
        sa.Column(
            "status",
            sa.Text,
            nullable=False,
            server_default="queued",
            comment="Job status: queued|processing|done|failed",
        ),
        sa.Column(
            "run_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment="Earliest time to claim job",
        ),
        sa.Column(
            "attempts",
            sa.Integer,
            nullable=False,
            server_default="0",
            comment="Number of claims made",
        ),
        sa.Column(
            "max_attempts",
            sa.Integer,
            nullable=False,
            server_default="10",
            comment="Attempt ceiling",
        ),
        # Lease
        sa.Column(
            "locked_until",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="Lease expiry",
        ),
        sa.Column(
            "locked_by", sa.Text, nullable=True, comment="Worker ID holding the lease"
        ),
        sa.Column("last_error", sa.Text, nullable=True, comment="Last error message"),
        # Timestamps
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # Constraints
        sa.CheckConstraint(
            "status IN ('queued', 'processing', 'done', 'failed')",
            name="jobs_status_check",
        ),
        sa.CheckConstraint("max_attempts >= 1", name="jobs_max_attempts_check"),
    )

    # Claim order scan
    op.create_index("ix_jobs_status_run_at", "jobs", ["status", "run_at"])

    # Note: partial index keeps the claim scan small once done/failed rows pile up
    op.create_index(
        "ix_jobs_claimable",
        "jobs",
        ["run_at", "created_at"],
        postgresql_where=sa.text("status IN ('queued', 'processing')"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_jobs_claimable", table_name="jobs")
    op.drop_index("ix_jobs_status_run_at", table_name="jobs")
    op.drop_table("jobs")
