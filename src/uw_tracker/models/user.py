# src/uw_tracker/models/user.py
"""SQLAlchemy model for directory users (underwriters and assigners)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from uw_tracker.core.clock import utcnow
from uw_tracker.db.session import Base

if TYPE_CHECKING:
    from uw_tracker.models.tracker import TrackerStatus


class User(Base):
    """A person known to the tracker, keyed by normalized email."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('underwriter', 'assigner')", name="ck_users_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    tracker: Mapped[TrackerStatus | None] = relationship(
        "TrackerStatus",
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )
