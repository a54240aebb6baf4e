"""Shared FastAPI dependencies."""

from __future__ import annotations

import logging

from src.config import get_settings
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)

_workspace: Workspace | None = None


def build_workspace() -> Workspace:
    """Create a workspace from settings, seeding demo data when enabled."""
    settings = get_settings()
    workspace = Workspace(
        propagation_policy=settings.workforce.propagation_policy,
        bcrypt_rounds=settings.admin.bcrypt_rounds,
    )
    if settings.workforce.seed_demo_data:
        from src.core.seed import seed_demo_data

        seed_demo_data(workspace)
    return workspace


def get_workspace() -> Workspace:
    """Process-wide workspace, created lazily on first use."""
    global _workspace
    if _workspace is None:
        _workspace = build_workspace()
        logger.info("Workspace initialized")
    return _workspace


def set_workspace(workspace: Workspace | None) -> None:
    global _workspace
    _workspace = workspace
