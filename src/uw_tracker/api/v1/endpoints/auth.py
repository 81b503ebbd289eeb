# src/uw_tracker/api/v1/endpoints/auth.py
"""Authentication endpoints: email-only sign-in against the directory."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, HTTPException, status

from uw_tracker.api.v1.dependencies import (
    AuditServiceDep,
    CurrentActorDep,
    DirectoryDep,
    create_access_token,
)
from uw_tracker.schemas.user import LoginRequest, LoginResponse, UserResponse
from uw_tracker.services.audit import AuditAction
from uw_tracker.services.directory import USER_NOT_FOUND, sanitize_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    directory: DirectoryDep,
    audit: AuditServiceDep,
) -> LoginResponse:
    """Exchange a registered email address for an access token."""
    email = sanitize_email(payload.email)
    user = await asyncio.to_thread(directory.get_user, email) if email else None
    if user is None:
        logger.info("Rejected sign-in for unrecognized email %s", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=USER_NOT_FOUND)

    await asyncio.to_thread(
        audit.record, AuditAction.USER_LOGIN, user.id, None, None, user.role.value
    )
    return LoginResponse(
        access_token=create_access_token(user.id, {"role": user.role.value}),
        token_type="bearer",
        display_name=user.display_name,
        role=user.role.value,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(actor: CurrentActorDep, audit: AuditServiceDep) -> None:
    """Record a sign-out. Tokens are stateless and simply discarded by the client."""
    await asyncio.to_thread(audit.record, AuditAction.USER_LOGOUT, actor.id)


@router.get("/me", response_model=UserResponse)
async def me(actor: CurrentActorDep, directory: DirectoryDep) -> UserResponse:
    """Return the signed-in user's directory entry."""
    user = await asyncio.to_thread(directory.get_user, actor.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return UserResponse(id=user.id, display_name=user.display_name, role=user.role.value)
