# src/kettle_stage/models/kettle.py
"""SQLAlchemy models for kettles (topic rooms)."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from kettle_stage.db.session import Base
from kettle_stage.db.time import utcnow


class Kettle(Base):
    """Topic room grouping anonymous posts.

    Heat totals, post counts and the boiling flag are derived from member
    posts on read and are never stored on the row.
    """

    __tablename__ = "kettle"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stable, user-facing handle used in URLs.
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
