# src/uw_tracker/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .audit import AuditEntryResponse
from .board import (
    BoardResponse,
    CounterUpdate,
    MutationResponse,
    NotificationResponse,
    StatusUpdate,
    WorkerViewResponse,
)
from .user import LoginRequest, LoginResponse, UserCreate, UserResponse

__all__ = [
    "AuditEntryResponse",
    "BoardResponse", "CounterUpdate", "MutationResponse", "NotificationResponse",
    "StatusUpdate", "WorkerViewResponse",
    "LoginRequest", "LoginResponse", "UserCreate", "UserResponse",
]
