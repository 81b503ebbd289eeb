# src/uw_tracker/models/__init__.py
"""SQLAlchemy models for the UW Tracker application."""

from .audit import AuditLogEntry
from .tracker import LedgerMeta, TrackerStatus
from .user import User

__all__ = [
    "AuditLogEntry",
    "LedgerMeta", "TrackerStatus",
    "User",
]
