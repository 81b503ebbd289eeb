# src/uw_tracker/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .audit import router as audit_router
from .auth import router as auth_router
from .board import router as board_router

__all__ = [
    "auth_router",
    "board_router",
    "admin_router",
    "audit_router",
]
