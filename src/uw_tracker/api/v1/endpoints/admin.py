# src/uw_tracker/api/v1/endpoints/admin.py
"""Directory administration endpoints (assigners only)."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, status

from uw_tracker.api.v1.dependencies import (
    AssignerDep,
    AuditServiceDep,
    BoardServiceDep,
    DirectoryDep,
)
from uw_tracker.schemas.user import UserCreate, UserResponse
from uw_tracker.services.audit import AuditAction
from uw_tracker.services.directory import DirectoryUser
from uw_tracker.services.ledger import normalize_id

router = APIRouter(prefix="/admin/users", tags=["admin"])


def _user_response(user: DirectoryUser) -> UserResponse:
    return UserResponse(id=user.id, display_name=user.display_name, role=user.role.value)


@router.get("", response_model=list[UserResponse])
async def list_users(actor: AssignerDep, directory: DirectoryDep) -> list[UserResponse]:
    """List every registered user ordered by name."""
    users = await asyncio.to_thread(directory.list_users)
    return [_user_response(user) for user in users]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def add_user(
    payload: UserCreate,
    actor: AssignerDep,
    directory: DirectoryDep,
    audit: AuditServiceDep,
    board: BoardServiceDep,
) -> UserResponse:
    """Register an underwriter or assigner; underwriters start neutral with no files."""
    user = await asyncio.to_thread(directory.add_user, payload.email, payload.name, payload.role)
    await asyncio.to_thread(
        audit.record,
        AuditAction.USER_ADDED,
        actor.id,
        user.id,
        None,
        {"name": user.display_name, "role": user.role.value},
    )
    await board.roster_changed()
    return _user_response(user)


@router.delete("/{email}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    email: str,
    actor: AssignerDep,
    directory: DirectoryDep,
    audit: AuditServiceDep,
    board: BoardServiceDep,
) -> None:
    """Remove a user and their board row."""
    email = normalize_id(email)
    await asyncio.to_thread(directory.remove_user, email)
    await asyncio.to_thread(audit.record, AuditAction.USER_REMOVED, actor.id, email)
    await board.roster_changed(removed=email)
