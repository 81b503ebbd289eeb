# tests/services/test_directory.py
"""Tests for the user directory and email validation."""

import pytest

from tests.conftest import AMY, SAM
from uw_tracker.core.errors import TrackerError, UnknownWorker
from uw_tracker.services.directory import (
    INVALID_DOMAIN,
    INVALID_EMAIL_FORMAT,
    DuplicateUser,
    InvalidEmail,
    SqlAlchemyDirectory,
    is_allowed_domain,
    is_valid_email,
    sanitize_email,
    validate_email,
)
from uw_tracker.services.ledger import Role


def test_sanitize_email_normalizes() -> None:
    assert sanitize_email("  Amy.Adams@NationsLending.com ") == "amy.adams@nationslending.com"
    assert sanitize_email("amy<script>@nationslending.com") == "amyscript@nationslending.com"


@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("amy@nationslending.com", True),
        ("amy+uw@nationslending.com", True),
        ("amy@", False),
        ("@nationslending.com", False),
        ("not an email", False),
        ("", False),
    ],
)
def test_is_valid_email(email: str, expected: bool) -> None:
    assert is_valid_email(email) is expected


def test_allowed_domain_accepts_subdomains() -> None:
    assert is_allowed_domain("amy@nationslending.com")
    assert is_allowed_domain("amy@uw.nationslending.com")
    assert not is_allowed_domain("amy@gmail.com")
    assert not is_allowed_domain("amy@evilnationslending.com")


def test_empty_domain_list_allows_any() -> None:
    assert is_allowed_domain("amy@gmail.com", allowed_domains=[])


def test_validate_email_messages() -> None:
    with pytest.raises(InvalidEmail) as bad_format:
        validate_email("amy")
    assert bad_format.value.user_message == INVALID_EMAIL_FORMAT

    with pytest.raises(InvalidEmail) as bad_domain:
        validate_email("amy@gmail.com")
    assert bad_domain.value.user_message == INVALID_DOMAIN


def test_list_users_ordered_by_name(directory: SqlAlchemyDirectory, users) -> None:
    assert [user.display_name for user in directory.list_users()] == [
        "Amy Adams",
        "Sam Sloane",
        "Zara Zimmer",
    ]


def test_role_lookup(directory: SqlAlchemyDirectory, users) -> None:
    assert directory.role_of(AMY.upper()) == Role.UNDERWRITER
    assert directory.role_of(SAM) == Role.ASSIGNER
    assert users["sam"].as_actor().is_assigner

    with pytest.raises(UnknownWorker):
        directory.role_of("ghost@nationslending.com")


def test_get_user_missing_returns_none(directory: SqlAlchemyDirectory) -> None:
    assert directory.get_user("ghost@nationslending.com") is None


def test_add_user_rejects_duplicates(directory: SqlAlchemyDirectory, users) -> None:
    with pytest.raises(DuplicateUser):
        directory.add_user(AMY.upper(), "Amy Again", "underwriter")


def test_add_user_requires_name(directory: SqlAlchemyDirectory) -> None:
    with pytest.raises(TrackerError, match="Name is required"):
        directory.add_user("new@nationslending.com", "   ", "underwriter")


def test_add_user_rejects_unknown_role(directory: SqlAlchemyDirectory) -> None:
    with pytest.raises(ValueError):
        directory.add_user("new@nationslending.com", "New Person", "manager")


@pytest.mark.asyncio
async def test_new_underwriter_joins_board(directory: SqlAlchemyDirectory, store, users) -> None:
    directory.add_user("new@nationslending.com", "New Person", Role.UNDERWRITER)

    ledger = await store.load_ledger()

    assert "new@nationslending.com" in ledger
    assert ledger.get("new@nationslending.com").counter == 0


@pytest.mark.asyncio
async def test_remove_user_drops_board_row(directory: SqlAlchemyDirectory, store, users) -> None:
    directory.remove_user(AMY)

    assert directory.get_user(AMY) is None
    assert AMY not in await store.load_ledger()
    with pytest.raises(UnknownWorker):
        directory.remove_user(AMY)
