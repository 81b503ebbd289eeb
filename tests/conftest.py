# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from uw_tracker.api.v1.dependencies import (
    create_access_token,
    get_audit_service_dep,
    get_board_service_dep,
    get_directory_dep,
)
from uw_tracker.core.clock import FixedClock
from uw_tracker.db.session import Base
from uw_tracker.main import app as fastapi_app
from uw_tracker.services.audit import AuditLogService
from uw_tracker.services.board import BoardService, Notification
from uw_tracker.services.directory import DirectoryUser, SqlAlchemyDirectory
from uw_tracker.services.retry import RetryConfig
from uw_tracker.services.store import SqlAlchemyStore

TEST_DB_URL = "sqlite://"

# 2024-01-15 09:00 in the UTC-6 civil timezone
CLOCK_START = datetime(2024, 1, 15, 15, 0, tzinfo=UTC)
TODAY = "2024-01-15"

AMY = "amy@nationslending.com"
ZARA = "zara@nationslending.com"
SAM = "sam@nationslending.com"

FAST_RETRY = RetryConfig(max_attempts=2, base_delay=0.0, max_delay=0.0, jitter_ratio=0.0)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(CLOCK_START, utc_offset_hours=-6, day_boundary_hour=2)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_factory, retry_config=FAST_RETRY)


@pytest.fixture()
def audit(session_factory: sessionmaker[Session]) -> AuditLogService:
    return AuditLogService(session_factory, max_entries=500)


@pytest.fixture()
def directory(session_factory: sessionmaker[Session]) -> SqlAlchemyDirectory:
    return SqlAlchemyDirectory(session_factory)


@pytest.fixture()
def notifications() -> list[Notification]:
    return []


@pytest.fixture()
def board(
    store: SqlAlchemyStore,
    clock: FixedClock,
    audit: AuditLogService,
    notifications: list[Notification],
) -> Iterator[BoardService]:
    service = BoardService(store, clock=clock, audit=audit, on_notification=notifications.append)
    service.start_listening()
    try:
        yield service
    finally:
        service.stop_listening()


@pytest.fixture()
def users(directory: SqlAlchemyDirectory) -> dict[str, DirectoryUser]:
    """Register two underwriters and one assigner."""
    return {
        "amy": directory.add_user(AMY, "Amy Adams", "underwriter"),
        "zara": directory.add_user(ZARA, "Zara Zimmer", "underwriter"),
        "sam": directory.add_user(SAM, "Sam Sloane", "assigner"),
    }


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def override_services(
    app: FastAPI,
    board: BoardService,
    directory: SqlAlchemyDirectory,
    audit: AuditLogService,
) -> Iterator[None]:
    overrides: dict[Callable[..., object], Callable[[], object]] = {
        get_board_service_dep: lambda: board,
        get_directory_dep: lambda: directory,
        get_audit_service_dep: lambda: audit,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI, override_services: None) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def auth_headers(email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(email)}"}


@pytest.fixture()
def amy_headers(users: dict[str, DirectoryUser]) -> dict[str, str]:
    """Authorization headers for an underwriter."""
    return auth_headers(AMY)


@pytest.fixture()
def sam_headers(users: dict[str, DirectoryUser]) -> dict[str, str]:
    """Authorization headers for an assigner."""
    return auth_headers(SAM)
