"""Fixtures shared by the unit tests: clock, ids, workspaces, API client."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.api.auth import create_jwt
from src.api.deps import get_workspace
from src.core.models import (
    Asset,
    AssetTypeConfig,
    Assignment,
    User,
)
from src.core.seed import seed_demo_data
from src.core.workspace import Workspace
from src.main import app

NOW = datetime(2024, 7, 29, 10, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for deterministic timestamps."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_id_factory() -> Callable[[str], str]:
    counter = itertools.count(101)
    return lambda prefix: f"{prefix}-{next(counter)}"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace(clock: FakeClock) -> Workspace:
    """Empty workspace with a fixed clock and predictable ids."""
    return Workspace(clock=clock, id_factory=make_id_factory(), bcrypt_rounds=4)


@pytest.fixture
def demo_workspace(workspace: Workspace) -> Workspace:
    """Workspace loaded with the demo organization."""
    return seed_demo_data(workspace)


@pytest.fixture
def restaurant_config() -> AssetTypeConfig:
    return AssetTypeConfig.model_validate(
        {
            "id": "type-restaurant",
            "name": "Restaurant",
            "positions": [
                {"id": "pos-sm", "title": "Store Manager"},
                {"id": "pos-crew", "title": "Crew Member"},
            ],
            "pages": [
                {
                    "id": "page-reports",
                    "name": "Reports",
                    "permissions": [
                        {"id": "perm-pnl", "description": "View P&L"},
                        {"id": "perm-sales", "description": "View sales"},
                    ],
                },
                {"id": "page-dash", "name": "Dashboard"},
            ],
            "permission_matrix": {
                "pos-sm": {"page-reports": True, "perm-pnl": True, "perm-sales": True},
                "pos-crew": {"page-dash": True, "perm-pnl": False},
            },
        }
    )


@pytest.fixture
def store() -> Asset:
    return Asset(id="asset-1", name="Cafe #1", asset_type_id="type-restaurant")


@pytest.fixture
def manager(store: Asset) -> User:
    return User(
        id="user-sm",
        first_name="Alex",
        last_name="Chen",
        username="achen",
        email="alex@example.com",
        assignments=[
            Assignment(id="a-1", asset_id=store.id, asset_name=store.name, position_id="pos-sm")
        ],
    )


@pytest.fixture
def crew(store: Asset) -> User:
    return User(
        id="user-crew",
        first_name="Maria",
        last_name="Garcia",
        username="mgarcia",
        email="maria@example.com",
        assignments=[
            Assignment(id="a-2", asset_id=store.id, asset_name=store.name, position_id="pos-crew")
        ],
    )


# --- API ---

TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def client(demo_workspace: Workspace) -> Iterator[TestClient]:
    """TestClient for the full app, bound to the demo workspace."""
    with patch("src.api.auth.get_settings") as mock_settings:
        mock_settings.return_value.admin.jwt_secret = TEST_JWT_SECRET
        mock_settings.return_value.admin.jwt_ttl_seconds = 3600
        app.dependency_overrides[get_workspace] = lambda: demo_workspace
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build a bearer header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        token = create_jwt({"sub": user_id}, TEST_JWT_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _headers
