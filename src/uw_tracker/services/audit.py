"""Audit trail of board changes.

Entries record who changed what for whom, with previous and new values.
The log is capped at ``settings.audit_max_entries`` rows; older entries are
pruned on write.
"""

from __future__ import annotations

import csv
import enum
import io
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from uw_tracker.core.settings import settings
from uw_tracker.models import AuditLogEntry

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Timestamp", "Action", "Actor", "Target", "Previous Value", "New Value"]


class AuditAction(str, enum.Enum):
    STATUS_CHANGE = "status_change"
    COUNT_CHANGE = "count_change"
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    DAILY_RESET = "daily_reset"
    USER_ADDED = "user_added"
    USER_REMOVED = "user_removed"


@dataclass(frozen=True)
class AuditFilter:
    action: str | None = None
    actor: str | None = None
    target: str | None = None
    start: datetime | None = None
    end: datetime | None = None


class AuditLogService:
    """Writes and queries audit entries."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        *,
        max_entries: int | None = None,
    ) -> None:
        if session_factory is None:
            from uw_tracker.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory
        self.max_entries = settings.audit_max_entries if max_entries is None else max_entries

    def record(
        self,
        action: AuditAction,
        actor: str | None,
        target: str | None = None,
        previous_value: Any = None,
        new_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLogEntry | None:
        """Persist an entry. Failures are logged and never raised."""
        entry = AuditLogEntry(
            action=AuditAction(action).value,
            actor=actor,
            target=target,
            previous_value=previous_value,
            new_value=new_value,
            details=details or {},
        )
        try:
            with self._session_factory() as db:
                db.add(entry)
                db.flush()
                self._prune(db)
                db.commit()
                db.refresh(entry)
                db.expunge(entry)
        except SQLAlchemyError as exc:
            logger.warning("Failed to record audit entry %s for %s: %s", action, target, exc)
            return None
        logger.info("[audit] %s actor=%s target=%s %r -> %r", entry.action, actor, target,
                    previous_value, new_value)
        return entry

    def _prune(self, db: Session) -> None:
        if self.max_entries <= 0:
            return
        total = db.query(func.count(AuditLogEntry.id)).scalar() or 0
        excess = total - self.max_entries
        if excess > 0:
            stale = [
                row_id
                for (row_id,) in db.query(AuditLogEntry.id)
                .order_by(AuditLogEntry.id)
                .limit(excess)
                .all()
            ]
            db.query(AuditLogEntry).filter(AuditLogEntry.id.in_(stale)).delete(
                synchronize_session=False
            )

    def entries(self, filters: AuditFilter | None = None, limit: int | None = None) -> list[AuditLogEntry]:
        """Return entries oldest first, optionally filtered.

        Actor and target filters are case-insensitive substring matches.
        """
        filters = filters or AuditFilter()
        with self._session_factory() as db:
            query = db.query(AuditLogEntry)
            if filters.action:
                query = query.filter(AuditLogEntry.action == filters.action)
            if filters.actor:
                query = query.filter(AuditLogEntry.actor.ilike(f"%{filters.actor}%"))
            if filters.target:
                query = query.filter(AuditLogEntry.target.ilike(f"%{filters.target}%"))
            if filters.start:
                query = query.filter(AuditLogEntry.created_at >= filters.start)
            if filters.end:
                query = query.filter(AuditLogEntry.created_at <= filters.end)
            query = query.order_by(AuditLogEntry.id)
            rows = query.all()
            if limit is not None:
                rows = rows[-limit:]
            for row in rows:
                db.expunge(row)
            return rows

    def user_activity(self, email: str, limit: int = 50) -> list[AuditLogEntry]:
        """Return the most recent entries where ``email`` is actor or target."""
        email = email.strip().lower()
        with self._session_factory() as db:
            rows = (
                db.query(AuditLogEntry)
                .filter(
                    or_(
                        func.lower(AuditLogEntry.actor) == email,
                        func.lower(AuditLogEntry.target) == email,
                    )
                )
                .order_by(AuditLogEntry.id.desc())
                .limit(limit)
                .all()
            )
            for row in rows:
                db.expunge(row)
            return list(reversed(rows))

    def clear(self) -> None:
        with self._session_factory() as db:
            db.query(AuditLogEntry).delete()
            db.commit()
        logger.info("[audit] log cleared")

    def export_csv(self, filters: AuditFilter | None = None) -> str:
        rows = self.entries(filters)
        if not rows:
            return "No audit log entries"
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for row in rows:
            writer.writerow(
                [
                    row.created_at.isoformat() if row.created_at else "",
                    row.action,
                    row.actor or "",
                    row.target or "",
                    json.dumps(row.previous_value),
                    json.dumps(row.new_value),
                ]
            )
        return buffer.getvalue()


def get_audit_service() -> AuditLogService:
    """Return an audit service bound to the application database."""
    return AuditLogService()
