# src/kettle_stage/models/report.py
"""SQLAlchemy model for participant reports against posts."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from kettle_stage.db.session import Base
from kettle_stage.db.time import utcnow


class Report(Base):
    """A participant flagging a post for moderators.

    Reports are stored only; reviewing them happens outside this service.
    """

    __tablename__ = "report"
    __table_args__ = (
        UniqueConstraint("post_id", "reporter_fingerprint", name="uq_report_post_reporter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Random per-device token from the client's ledger file, not an identity.
    reporter_fingerprint: Mapped[str] = mapped_column(Text, nullable=False)

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
