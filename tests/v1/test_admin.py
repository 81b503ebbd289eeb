# tests/v1/test_admin.py
"""Tests for directory administration endpoints."""

from fastapi import status

from tests.conftest import AMY, SAM
from uw_tracker.models import TrackerStatus
from uw_tracker.services.directory import INVALID_DOMAIN


def test_list_users_requires_assigner(client, amy_headers) -> None:
    response = client.get("/api/v1/admin/users", headers=amy_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_users(client, sam_headers) -> None:
    response = client.get("/api/v1/admin/users", headers=sam_headers)

    assert response.status_code == status.HTTP_200_OK
    assert [user["id"] for user in response.json()] == [
        AMY,
        SAM,
        "zara@nationslending.com",
    ]


def test_add_underwriter_appears_on_board(client, sam_headers, audit) -> None:
    response = client.post(
        "/api/v1/admin/users",
        json={"email": "New.Hire@NationsLending.com", "name": "Nina Hire", "role": "underwriter"},
        headers=sam_headers,
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json() == {
        "id": "new.hire@nationslending.com",
        "display_name": "Nina Hire",
        "role": "underwriter",
    }
    board = client.get("/api/v1/board", headers=sam_headers).json()
    assert "new.hire@nationslending.com" in {w["id"] for w in board["workers"]}
    assert "user_added" in {entry.action for entry in audit.entries()}


def test_add_duplicate_user(client, sam_headers) -> None:
    response = client.post(
        "/api/v1/admin/users",
        json={"email": AMY, "name": "Amy Again", "role": "underwriter"},
        headers=sam_headers,
    )
    assert response.status_code == status.HTTP_409_CONFLICT


def test_add_user_outside_company_domain(client, sam_headers) -> None:
    response = client.post(
        "/api/v1/admin/users",
        json={"email": "someone@gmail.com", "name": "Someone", "role": "assigner"},
        headers=sam_headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == INVALID_DOMAIN


def test_add_user_invalid_role(client, sam_headers) -> None:
    response = client.post(
        "/api/v1/admin/users",
        json={"email": "new@nationslending.com", "name": "New", "role": "manager"},
        headers=sam_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_remove_user(client, sam_headers, audit) -> None:
    response = client.delete(f"/api/v1/admin/users/{AMY}", headers=sam_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    entry = audit.entries()[-1]
    assert (entry.action, entry.actor, entry.target) == ("user_removed", SAM, AMY)

    again = client.delete(f"/api/v1/admin/users/{AMY}", headers=sam_headers)
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_added_underwriter_is_editable_without_reloading(client, sam_headers) -> None:
    client.get("/api/v1/board", headers=sam_headers)
    client.post(
        "/api/v1/admin/users",
        json={"email": "nina@nationslending.com", "name": "Nina Hire", "role": "underwriter"},
        headers=sam_headers,
    )

    response = client.post(
        "/api/v1/board/nina@nationslending.com/status",
        json={"status": "green"},
        headers=sam_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ok"] is True


def test_removed_underwriter_cannot_be_edited_and_can_return(
    client, sam_headers, session_factory
) -> None:
    zara = "zara@nationslending.com"
    client.get("/api/v1/board", headers=sam_headers)
    client.delete(f"/api/v1/admin/users/{zara}", headers=sam_headers)

    edit = client.post(f"/api/v1/board/{zara}/counter", json={"delta": 3}, headers=sam_headers)

    assert edit.status_code == status.HTTP_404_NOT_FOUND
    with session_factory() as db:
        assert db.get(TrackerStatus, zara) is None

    readd = client.post(
        "/api/v1/admin/users",
        json={"email": zara, "name": "Zara Zimmer", "role": "underwriter"},
        headers=sam_headers,
    )
    assert readd.status_code == status.HTTP_201_CREATED
