"""Unit tests for the user administration API."""

from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient

Headers = Callable[[str], dict[str, str]]

STORE = "asset-store-0142"


class TestUserAdmin:
    def test_list_requires_admin(self, client: TestClient, auth_headers: Headers) -> None:
        assert client.get("/users", headers=auth_headers("user-alex-chen")).status_code == 403
        response = client.get("/users", headers=auth_headers("user-admin"))
        assert len(response.json()["users"]) == 5
        assert all("password_hash" not in u for u in response.json()["users"])

    def test_create_user_and_log_in(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.put(
            "/users/user-pat",
            json={
                "first_name": "Pat",
                "last_name": "Lee",
                "username": "plee",
                "email": "pat.lee@lumina-pebble.com",
                "assignments": [{"id": "a-1", "asset_id": STORE, "position_id": "pos-res-sl"}],
                "password": "hunter22",
            },
            headers=auth_headers("user-admin"),
        )
        assert response.status_code == 200
        assignment = response.json()["user"]["assignments"][0]
        assert assignment["position_title"] == "Shift Lead"

        login = client.post("/auth/login", json={"username": "plee", "password": "hunter22"})
        assert login.status_code == 200

    def test_position_must_belong_to_asset_type(
        self, client: TestClient, auth_headers: Headers
    ) -> None:
        response = client.put(
            "/users/user-pat",
            json={
                "first_name": "Pat",
                "last_name": "Lee",
                "username": "plee",
                "email": "pat.lee@lumina-pebble.com",
                "assignments": [{"id": "a-1", "asset_id": STORE, "position_id": "pos-hot-gm"}],
            },
            headers=auth_headers("user-admin"),
        )
        assert response.status_code == 422
        assert response.json()["field"] == "assignments"


class TestChangePassword:
    def test_self_change(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/users/user-alex-chen/password",
            json={
                "old_password": "password123",
                "new_password": "better-pass",
                "confirm_password": "better-pass",
            },
            headers=auth_headers("user-alex-chen"),
        )
        assert response.json() == {"status": "password_changed"}
        login = client.post("/auth/login", json={"username": "achen", "password": "better-pass"})
        assert login.status_code == 200

    def test_self_change_needs_old_password(
        self, client: TestClient, auth_headers: Headers
    ) -> None:
        response = client.post(
            "/users/user-alex-chen/password",
            json={"new_password": "x", "confirm_password": "x"},
            headers=auth_headers("user-alex-chen"),
        )
        assert response.status_code == 422

    def test_wrong_old_password(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/users/user-alex-chen/password",
            json={"old_password": "nope", "new_password": "x", "confirm_password": "x"},
            headers=auth_headers("user-alex-chen"),
        )
        assert response.status_code == 401

    def test_mismatch(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/users/user-alex-chen/password",
            json={"old_password": "password123", "new_password": "x", "confirm_password": "y"},
            headers=auth_headers("user-alex-chen"),
        )
        assert response.status_code == 422
        assert response.json()["field"] == "confirm_password"

    def test_admin_reset_and_non_admin_forbidden(
        self, client: TestClient, auth_headers: Headers
    ) -> None:
        body = {"new_password": "reset-1", "confirm_password": "reset-1"}
        forbidden = client.post(
            "/users/user-maria-garcia/password", json=body, headers=auth_headers("user-alex-chen")
        )
        assert forbidden.status_code == 403
        reset = client.post(
            "/users/user-maria-garcia/password", json=body, headers=auth_headers("user-admin")
        )
        assert reset.status_code == 200
