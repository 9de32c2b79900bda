"""create report

Revision ID: 8e41d0c5a9f3
Revises: 3c9f1a2b7d40
Create Date: 2026-10-18 14:03:27.518440

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "8e41d0c5a9f3"
down_revision: Union[str, Sequence[str], None] = "3c9f1a2b7d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the report table."""
    op.create_table(
        "report",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.String(length=36), nullable=False),
        sa.Column("reporter_fingerprint", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "reporter_fingerprint", name="uq_report_post_reporter"),
    )
    op.create_index("ix_report_post_id", "report", ["post_id"])


def downgrade() -> None:
    """Drop the report table."""
    op.drop_index("ix_report_post_id", table_name="report")
    op.drop_table("report")
