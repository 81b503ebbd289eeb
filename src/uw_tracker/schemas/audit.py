"""Audit log Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditEntryResponse(BaseModel):
    id: int
    action: str
    actor: str | None
    target: str | None
    previous_value: Any = None
    new_value: Any = None
    details: dict[str, Any] | None = Field(None, serialization_alias="metadata")
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
