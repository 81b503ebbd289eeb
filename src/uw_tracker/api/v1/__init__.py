# src/uw_tracker/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    audit_router,
    auth_router,
    board_router,
)

__all__ = [
    "auth_router",
    "board_router",
    "admin_router",
    "audit_router",
]
