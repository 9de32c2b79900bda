# src/kettle_stage/models/post.py
"""SQLAlchemy models for posts and their heat."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kettle_stage.db.session import Base
from kettle_stage.db.time import utcnow


def _new_post_id() -> str:
    return str(uuid.uuid4())


class Post(Base):
    """Anonymous message poured into a kettle.

    The heat score is the single authoritative popularity value; clients only
    ever hold optimistic copies of it.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_kettle_created", "kettle_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_post_id)
    kettle_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("kettle.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Replies point at a post in the same kettle; top-level posts have NULL.
    parent_post_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=True,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # May go negative; display code clamps to zero.
    heat_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Display-only pseudonym, assigned once at creation.
    anonymous_identity: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Soft removal by moderation; hidden posts never reach the feed.
    is_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
