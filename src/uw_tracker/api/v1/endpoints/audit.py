# src/uw_tracker/api/v1/endpoints/audit.py
"""Audit log endpoints (assigners only)."""

from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from uw_tracker.api.v1.dependencies import AssignerDep, AuditServiceDep
from uw_tracker.schemas.audit import AuditEntryResponse
from uw_tracker.services.audit import AuditAction, AuditFilter

router = APIRouter(prefix="/audit", tags=["audit"])


def _filters(
    action: AuditAction | None,
    actor: str | None,
    target: str | None,
    start: datetime | None,
    end: datetime | None,
) -> AuditFilter:
    return AuditFilter(
        action=action.value if action else None,
        actor=actor,
        target=target,
        start=start,
        end=end,
    )


@router.get("", response_model=list[AuditEntryResponse])
async def list_entries(
    actor: AssignerDep,
    audit: AuditServiceDep,
    action: AuditAction | None = Query(None),
    actor_filter: str | None = Query(None, alias="actor"),
    target: str | None = Query(None),
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    limit: int | None = Query(None, ge=1, le=1000),
) -> list[AuditEntryResponse]:
    """Return audit entries, oldest first, matching the given filters."""
    rows = await asyncio.to_thread(
        audit.entries, _filters(action, actor_filter, target, start, end), limit
    )
    return [AuditEntryResponse.model_validate(row) for row in rows]


@router.get("/users/{email}", response_model=list[AuditEntryResponse])
async def user_activity(
    email: str,
    actor: AssignerDep,
    audit: AuditServiceDep,
    limit: int = Query(50, ge=1, le=500),
) -> list[AuditEntryResponse]:
    """Recent entries where the user acted or was affected."""
    rows = await asyncio.to_thread(audit.user_activity, email, limit)
    return [AuditEntryResponse.model_validate(row) for row in rows]


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_csv(
    actor: AssignerDep,
    audit: AuditServiceDep,
    action: AuditAction | None = Query(None),
    actor_filter: str | None = Query(None, alias="actor"),
    target: str | None = Query(None),
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
) -> PlainTextResponse:
    """Download the filtered audit log as CSV."""
    body = await asyncio.to_thread(
        audit.export_csv, _filters(action, actor_filter, target, start, end)
    )
    return PlainTextResponse(
        body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="audit_log.csv"'},
    )
