"""Unit tests for the university API."""

from __future__ import annotations

from collections.abc import Callable

from fastapi.testclient import TestClient

Headers = Callable[[str], dict[str, str]]


class TestCourseCompletion:
    def test_self_completion_propagates(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers("user-maria-garcia")
        response = client.post("/university/courses/LMS-101/complete", json={}, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["enrollment"]["status"] == "Completed"
        assert body["enrollment"]["progress"] == 100
        assert body["certification"] is None
        assert body["completed_tasks"] == [{"project_id": "proj-101", "task_id": "t1-2"}]

        project = client.get("/projects/proj-101", headers=headers).json()["project"]
        task = next(t for t in project["tasks"] if t["id"] == "t1-2")
        assert task["completed_by"] == "Maria Garcia"

    def test_completion_with_rule_issues_certification(
        self, client: TestClient, auth_headers: Headers
    ) -> None:
        response = client.post(
            "/university/courses/LMS-301/complete",
            json={"user_id": "user-maria-garcia"},
            headers=auth_headers("user-admin"),
        )
        cert = response.json()["certification"]
        assert cert["expiration_date"].startswith("2026-07-29")

    def test_cannot_complete_for_others(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/university/courses/LMS-101/complete",
            json={"user_id": "user-maria-garcia"},
            headers=auth_headers("user-alex-chen"),
        )
        assert response.status_code == 403

    def test_unknown_course(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/university/courses/LMS-999/complete",
            json={},
            headers=auth_headers("user-maria-garcia"),
        )
        assert response.status_code == 404


class TestRecords:
    def test_own_enrollments(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.get(
            "/university/users/user-maria-garcia/enrollments",
            headers=auth_headers("user-maria-garcia"),
        )
        assert {e["id"] for e in response.json()["enrollments"]} == {"enroll-1", "enroll-2"}

    def test_others_certifications_forbidden(
        self, client: TestClient, auth_headers: Headers
    ) -> None:
        response = client.get(
            "/university/users/user-alex-chen/certifications",
            headers=auth_headers("user-maria-garcia"),
        )
        assert response.status_code == 403


class TestExpirations:
    def test_expiring(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.get(
            "/university/certifications/expiring",
            params={"days": 30},
            headers=auth_headers("user-admin"),
        )
        body = response.json()
        assert body["window_days"] == 30
        assert [c["id"] for c in body["certifications"]] == ["cert-1"]

    def test_narrow_window(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.get(
            "/university/certifications/expiring",
            params={"days": 7},
            headers=auth_headers("user-admin"),
        )
        assert response.json()["certifications"] == []

    def test_check_is_idempotent(self, client: TestClient, auth_headers: Headers) -> None:
        headers = auth_headers("user-admin")
        first = client.post(
            "/university/certifications/check-expirations", params={"days": 30}, headers=headers
        ).json()
        assert first["enrolled_count"] == 1
        assert first["notices"][0]["action"] == "enrolled"
        assert first["notices"][0]["user_email"] == "alex.chen@lumina-pebble.com"

        second = client.post(
            "/university/certifications/check-expirations", params={"days": 30}, headers=headers
        ).json()
        assert second["enrolled_count"] == 0
        assert second["notices"][0]["action"] == "already_enrolled"

    def test_admin_only(self, client: TestClient, auth_headers: Headers) -> None:
        response = client.post(
            "/university/certifications/check-expirations",
            headers=auth_headers("user-alex-chen"),
        )
        assert response.status_code == 403
