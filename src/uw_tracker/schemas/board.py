"""Board-related Pydantic schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StatusUpdate(BaseModel):
    """Request to toggle a status; repeating the active status clears it."""

    status: Literal["green", "red"] = Field(..., description="Status to set or clear")


class CounterUpdate(BaseModel):
    """Request to adjust an underwriter's assigned-file counter."""

    delta: int = Field(..., ge=-99, le=99, description="Amount to add; result is clamped to 0..99")


class WorkerViewResponse(BaseModel):
    """One board row as seen by the requesting user."""

    id: str
    display_name: str
    status: Literal["green", "neutral", "red"]
    counter: int | None = Field(None, description="Only present for assigners")
    status_time: str | None = None
    status_timestamp: int | None = None
    is_own: bool = False
    can_edit_status: bool = False

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    message: str
    level: str
    ttl_seconds: float

    model_config = ConfigDict(from_attributes=True)


class BoardResponse(BaseModel):
    """Sorted board for the requesting user."""

    workers: list[WorkerViewResponse]
    last_reset_date: str | None
    total_assigned: int | None = Field(None, description="Only present for assigners")


class MutationResponse(BaseModel):
    ok: bool
    changed: bool
    notification: NotificationResponse | None = None
    board: BoardResponse
