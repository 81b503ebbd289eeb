"""Shared API dependencies for authentication and service access."""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from uw_tracker.core.errors import UNAUTHORIZED_MESSAGE
from uw_tracker.core.settings import settings
from uw_tracker.services.audit import AuditLogService, get_audit_service
from uw_tracker.services.board import BoardService, get_board_service
from uw_tracker.services.directory import SqlAlchemyDirectory, get_directory
from uw_tracker.services.ledger import Actor

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


def get_board_service_dep() -> BoardService:
    """Return the shared board service."""
    return get_board_service()


def get_directory_dep() -> SqlAlchemyDirectory:
    """Return the user directory."""
    return get_directory()


def get_audit_service_dep() -> AuditLogService:
    """Return the audit log service."""
    return get_audit_service()


BoardServiceDep = Annotated[BoardService, Depends(get_board_service_dep)]
DirectoryDep = Annotated[SqlAlchemyDirectory, Depends(get_directory_dep)]
AuditServiceDep = Annotated[AuditLogService, Depends(get_audit_service_dep)]


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for a directory user."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    directory: DirectoryDep,
) -> Actor:
    """Resolve the bearer token to an actor whose role comes from the directory.

    Raises:
        HTTPException: If the token is invalid or the user is no longer registered
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    user = directory.get_user(subject)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user.as_actor()


CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]


def require_assigner(actor: CurrentActorDep) -> Actor:
    if not actor.is_assigner:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=UNAUTHORIZED_MESSAGE)
    return actor


AssignerDep = Annotated[Actor, Depends(require_assigner)]
