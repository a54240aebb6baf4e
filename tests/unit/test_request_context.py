"""Unit tests for the request context middleware and the health endpoint."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware.request_context import RequestContextMiddleware
from src.config import APP_VERSION


@pytest.fixture
def bare_client() -> TestClient:
    """A test app with only the request context middleware."""
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/test")
    async def test_endpoint() -> dict:
        return {"status": "ok"}

    return TestClient(app)


class TestRequestContext:
    def test_request_id_generated(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/test")
        assert len(resp.headers["X-Request-ID"]) == 36

    def test_request_id_echoed(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/test", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"

    def test_security_headers(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/test")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert "frame-ancestors 'none'" in resp.headers["Content-Security-Policy"]


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": APP_VERSION}
        assert "X-Request-ID" in resp.headers
