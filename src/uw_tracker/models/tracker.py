# src/uw_tracker/models/tracker.py
"""Persisted board state: one row per underwriter plus the shared reset epoch."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from uw_tracker.core.clock import utcnow
from uw_tracker.db.session import Base

if TYPE_CHECKING:
    from uw_tracker.models.user import User


class TrackerStatus(Base):
    """Current status and assigned-file count for a single underwriter."""

    __tablename__ = "tracker_status"
    __table_args__ = (
        CheckConstraint("status IN ('green', 'neutral', 'red')", name="ck_tracker_status"),
        CheckConstraint("count >= 0 AND count <= 99", name="ck_tracker_count"),
    )

    email: Mapped[str] = mapped_column(
        Text,
        ForeignKey("users.email", ondelete="CASCADE"),
        primary_key=True,
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default="neutral")
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Display time like "8:42 AM"
    status_time: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Epoch ms for sorting
    status_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship("User", back_populates="tracker")


class LedgerMeta(Base):
    """Singleton row holding the civil date of the last daily reset."""

    __tablename__ = "ledger_meta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    last_reset_date: Mapped[str | None] = mapped_column(Text, nullable=True)
