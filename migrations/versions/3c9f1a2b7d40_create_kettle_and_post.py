"""create kettle and post

Revision ID: 3c9f1a2b7d40
Revises:
Create Date: 2026-10-18 09:12:44.301822

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c9f1a2b7d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the kettle and post tables."""
    op.create_table(
        "kettle",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_table(
        "post",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("kettle_id", sa.Integer(), nullable=False),
        sa.Column("parent_post_id", sa.String(length=36), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("heat_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("anonymous_identity", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["kettle_id"], ["kettle.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_kettle_created", "post", ["kettle_id", "created_at"])


def downgrade() -> None:
    """Drop the kettle and post tables."""
    op.drop_index("ix_post_kettle_created", table_name="post")
    op.drop_table("post")
    op.drop_table("kettle")
