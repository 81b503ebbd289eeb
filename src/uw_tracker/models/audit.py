# src/uw_tracker/models/audit.py
"""Audit trail of board changes."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from uw_tracker.core.clock import utcnow
from uw_tracker.db.session import Base


class AuditLogEntry(Base):
    """One recorded action: who did what to whom, with before/after values."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    actor: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    target: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    previous_value: Mapped[Any] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Any] = mapped_column(JSON, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
