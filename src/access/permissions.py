"""Asset-scoped permission resolution.

A user's effective permission at an asset is decided, in order, by:

1. an explicit per-user override for (asset, permission),
2. the permission matrix entry of the position the user holds at that asset
   (looked up in the asset type's blueprint),
3. ``False``.

Global flags such as ``ACCESS_ADMIN_PANEL`` bypass the matrix for
admin-gated actions. Resolution never raises: unknown assets, asset types
or positions simply resolve to ``False``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from src.core.models import (
    Asset,
    AssetTypeConfig,
    ProjectTemplate,
    User,
    UserPermissionOverride,
)

logger = logging.getLogger(__name__)

# ── Global permission flags ──────────────────────────────────

ACCESS_ADMIN_PANEL = "ACCESS_ADMIN_PANEL"
VIEW_ALL_RESTAURANT_REPORTS = "VIEW_ALL_RESTAURANT_REPORTS"
MANAGE_ALL_USERS = "MANAGE_ALL_USERS"

GLOBAL_PERMISSIONS: dict[str, str] = {
    ACCESS_ADMIN_PANEL: "Can access the global admin panel.",
    VIEW_ALL_RESTAURANT_REPORTS: "Can view P&L for all restaurant assets.",
    MANAGE_ALL_USERS: "Can create, edit, and deactivate any user.",
}


class PermissionSource(enum.StrEnum):
    OVERRIDE = "override"
    POSITION = "position"
    DEFAULT = "default"


@dataclass(frozen=True)
class EffectivePermission:
    """Resolved value of one permission plus where it came from."""

    permission_id: str
    allowed: bool
    source: PermissionSource


def has_global_permission(user: User | None, flag: str) -> bool:
    if user is None:
        return False
    return flag in user.global_permissions


def is_admin(user: User | None) -> bool:
    return has_global_permission(user, ACCESS_ADMIN_PANEL)


def resolve_permission(
    user: User,
    asset: Asset | None,
    config: AssetTypeConfig | None,
    permission_id: str,
) -> EffectivePermission:
    """Resolve one permission (or page id) for a user at an asset."""
    if asset is None:
        return EffectivePermission(permission_id, False, PermissionSource.DEFAULT)

    override = user.override_for(asset.id, permission_id)
    if override is not None:
        return EffectivePermission(
            permission_id, override.has_permission, PermissionSource.OVERRIDE
        )

    if config is None or config.id != asset.asset_type_id:
        return EffectivePermission(permission_id, False, PermissionSource.DEFAULT)

    position_id = user.position_at(asset.id)
    if position_id is None:
        return EffectivePermission(permission_id, False, PermissionSource.DEFAULT)

    row = config.permission_matrix.get(position_id)
    if row is None or permission_id not in row:
        return EffectivePermission(permission_id, False, PermissionSource.DEFAULT)

    return EffectivePermission(permission_id, row[permission_id], PermissionSource.POSITION)


def has_permission(
    user: User | None,
    asset: Asset | None,
    config: AssetTypeConfig | None,
    permission_id: str,
) -> bool:
    """Check whether the user may perform ``permission_id`` at ``asset``."""
    if user is None:
        return False
    return resolve_permission(user, asset, config, permission_id).allowed


def effective_permissions(
    user: User, asset: Asset, config: AssetTypeConfig
) -> list[EffectivePermission]:
    """Resolve every granular permission defined by the asset type."""
    return [resolve_permission(user, asset, config, pid) for pid in config.permission_ids()]


def visible_pages(user: User, asset: Asset, config: AssetTypeConfig) -> list[str]:
    """Page ids the user's position at the asset grants access to."""
    position_id = user.position_at(asset.id)
    if position_id is None or config.id != asset.asset_type_id:
        return []
    row = config.permission_matrix.get(position_id, {})
    return [page.id for page in config.pages if row.get(page.id, False)]


# ── Launch authorization ─────────────────────────────────────


def can_launch_template(user: User | None, template: ProjectTemplate) -> bool:
    """User may launch if listed directly, by any held position, or as admin."""
    if user is None:
        return False
    access = template.access_permissions
    if user.id in access.user_ids:
        return True
    if any(pid in access.position_ids for pid in user.position_ids):
        return True
    return is_admin(user)


def template_applies_to_asset(template: ProjectTemplate, asset: Asset) -> bool:
    """A non-empty asset allow-list is exclusive; otherwise match on asset type."""
    if template.applies_to_asset_ids:
        return asset.id in template.applies_to_asset_ids
    return asset.asset_type_id in template.applies_to_asset_type_ids


# ── Blueprint editing (copy-on-write) ────────────────────────


def set_permission(
    config: AssetTypeConfig, position_id: str, permission_id: str, value: bool
) -> AssetTypeConfig:
    """Return a copy of the config with one matrix cell set."""
    updated = config.model_copy(deep=True)
    updated.permission_matrix.setdefault(position_id, {})[permission_id] = value
    return updated


def set_page_access(
    config: AssetTypeConfig, position_id: str, page_id: str, value: bool
) -> AssetTypeConfig:
    """Toggle page access; every granular permission on the page follows."""
    updated = config.model_copy(deep=True)
    row = updated.permission_matrix.setdefault(position_id, {})
    row[page_id] = value
    page = updated.page(page_id)
    if page is not None:
        for perm in page.permissions:
            row[perm.id] = value
    return updated


def remove_position(config: AssetTypeConfig, position_id: str) -> AssetTypeConfig:
    """Drop a position and its matrix row."""
    updated = config.model_copy(deep=True)
    updated.positions = [p for p in updated.positions if p.id != position_id]
    updated.permission_matrix.pop(position_id, None)
    return updated


def remove_page(config: AssetTypeConfig, page_id: str) -> AssetTypeConfig:
    updated = config.model_copy(deep=True)
    updated.pages = [p for p in updated.pages if p.id != page_id]
    return updated


# ── Per-user overrides ───────────────────────────────────────


def set_override(
    user: User, asset_id: str, permission_id: str, value: bool | None
) -> User:
    """Return a copy of the user with the override set.

    ``None`` means "Inherit": the override record is removed. At most one
    record per (asset, permission) pair is kept.
    """
    updated = user.model_copy(deep=True)
    remaining = [
        o
        for o in updated.overrides
        if not (o.asset_id == asset_id and o.permission_id == permission_id)
    ]
    if value is not None:
        remaining.append(
            UserPermissionOverride(
                asset_id=asset_id, permission_id=permission_id, has_permission=value
            )
        )
    updated.overrides = remaining
    logger.debug(
        "Override %s/%s for user %s set to %s",
        asset_id,
        permission_id,
        user.id,
        "inherit" if value is None else value,
    )
    return updated
