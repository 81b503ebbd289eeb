"""Directory of people who may use the tracker, and their roles."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from uw_tracker.core.errors import TrackerError, UnknownWorker
from uw_tracker.core.settings import settings
from uw_tracker.models import TrackerStatus, User
from uw_tracker.services.ledger import Actor, Role, Status, normalize_id

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_DISALLOWED_EMAIL_CHARS = re.compile(r"[^a-z0-9@._\-+]")

INVALID_EMAIL_FORMAT = "Please enter a valid email address."
INVALID_DOMAIN = "Please use your company email address."
USER_NOT_FOUND = "Email not recognized. Please contact your administrator if you need access."


class InvalidEmail(TrackerError):
    user_message = INVALID_EMAIL_FORMAT


class DuplicateUser(TrackerError):
    user_message = "A user with that email already exists."


@dataclass(frozen=True)
class DirectoryUser:
    id: str
    display_name: str
    role: Role

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)


def sanitize_email(email: str) -> str:
    """Lower-case and strip characters that can never appear in an address."""
    return _DISALLOWED_EMAIL_CHARS.sub("", normalize_id(email))


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(_EMAIL_PATTERN.match(email.strip()))


def is_allowed_domain(email: str, allowed_domains: Sequence[str] | None = None) -> bool:
    """Accept the configured domains and their subdomains."""
    if not is_valid_email(email):
        return False
    domains = settings.allowed_email_domains if allowed_domains is None else allowed_domains
    if not domains:
        return True
    domain = email.strip().lower().split("@", 1)[1]
    return any(domain == d.lower() or domain.endswith("." + d.lower()) for d in domains)


def validate_email(email: str, allowed_domains: Sequence[str] | None = None) -> str:
    """Return the sanitized address or raise ``InvalidEmail``."""
    cleaned = sanitize_email(email)
    if not is_valid_email(cleaned):
        raise InvalidEmail(INVALID_EMAIL_FORMAT)
    if not is_allowed_domain(cleaned, allowed_domains):
        raise InvalidEmail(INVALID_DOMAIN)
    return cleaned


class DirectoryService(Protocol):
    def list_users(self) -> list[DirectoryUser]: ...

    def role_of(self, user_id: str) -> Role: ...

    def get_user(self, user_id: str) -> DirectoryUser | None: ...


def _to_directory_user(user: User) -> DirectoryUser:
    return DirectoryUser(id=normalize_id(user.email), display_name=user.name, role=Role(user.role))


class SqlAlchemyDirectory:
    """Directory backed by the ``users`` table."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from uw_tracker.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def list_users(self) -> list[DirectoryUser]:
        with self._session_factory() as db:
            return [_to_directory_user(user) for user in db.query(User).order_by(User.name).all()]

    def get_user(self, user_id: str) -> DirectoryUser | None:
        with self._session_factory() as db:
            user = db.query(User).filter(User.email == normalize_id(user_id)).first()
            return _to_directory_user(user) if user else None

    def role_of(self, user_id: str) -> Role:
        user = self.get_user(user_id)
        if user is None:
            raise UnknownWorker(USER_NOT_FOUND)
        return user.role

    def add_user(self, email: str, name: str, role: Role | str) -> DirectoryUser:
        """Register a user; underwriters get a fresh board row."""
        email = validate_email(email)
        role = Role(role)
        name = name.strip()
        if not name:
            raise TrackerError("Name is required.")
        with self._session_factory() as db:
            user = User(email=email, name=name, role=role.value)
            if role == Role.UNDERWRITER:
                user.tracker = TrackerStatus(email=email, status=Status.NEUTRAL.value, count=0)
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateUser() from exc
            logger.info("Added %s %s", role.value, email)
            return _to_directory_user(user)

    def remove_user(self, email: str) -> None:
        email = normalize_id(email)
        with self._session_factory() as db:
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                raise UnknownWorker(USER_NOT_FOUND)
            db.delete(user)
            db.commit()
            logger.info("Removed user %s", email)


def get_directory() -> SqlAlchemyDirectory:
    """Return a directory bound to the application database."""
    return SqlAlchemyDirectory()
