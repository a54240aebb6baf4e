"""Access control API: asset type blueprints, assets and permission checks.

Blueprint and asset edits are admin-only; permission queries are
answered for the calling user unless an admin asks about someone else.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from src.access.permissions import ACCESS_ADMIN_PANEL, is_admin
from src.api.auth import require_global_permission, require_user
from src.api.deps import get_workspace
from src.core.models import Address, Asset, AssetTypeConfig, User
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/access-control", tags=["access-control"])

_workspace_dep = Depends(get_workspace)
_user_dep = Depends(require_user)
_admin_dep = Depends(require_global_permission(ACCESS_ADMIN_PANEL))


class MatrixCellUpdate(BaseModel):
    position_id: str
    permission_id: str
    value: bool


class PageAccessUpdate(BaseModel):
    position_id: str
    page_id: str
    value: bool


class CreateAssetRequest(BaseModel):
    name: str
    asset_type_id: str
    location: Address = Field(default_factory=Address)


class OverrideUpdate(BaseModel):
    asset_id: str
    permission_id: str
    value: bool | None  # None = inherit from position


# --- Asset type configs ---


@router.get("/asset-types")
async def list_asset_types(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    configs = [c.model_dump(mode="json") for c in workspace.asset_type_configs.values()]
    return {"asset_types": configs}


@router.put("/asset-types/{config_id}")
async def save_asset_type(
    config_id: str,
    config: AssetTypeConfig,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Insert or replace a whole asset type config."""
    if config.id != config_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")
    saved = workspace.save_asset_type_config(config)
    return {"asset_type": saved.model_dump(mode="json")}


@router.delete("/asset-types/{config_id}")
async def delete_asset_type(
    config_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, str]:
    """Delete an asset type; 409 while assets still use it."""
    workspace.delete_asset_type_config(config_id)
    return {"status": "deleted", "id": config_id}


@router.put("/asset-types/{config_id}/matrix")
async def set_matrix_cell(
    config_id: str,
    update: MatrixCellUpdate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    saved = workspace.set_matrix_permission(
        config_id, update.position_id, update.permission_id, update.value
    )
    return {"asset_type": saved.model_dump(mode="json")}


@router.put("/asset-types/{config_id}/pages")
async def set_page_access(
    config_id: str,
    update: PageAccessUpdate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Toggle page access; the page's granular permissions follow."""
    saved = workspace.set_page_access(config_id, update.position_id, update.page_id, update.value)
    return {"asset_type": saved.model_dump(mode="json")}


@router.delete("/asset-types/{config_id}/positions/{position_id}")
async def remove_position(
    config_id: str,
    position_id: str,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    saved = workspace.remove_position(config_id, position_id)
    return {"asset_type": saved.model_dump(mode="json")}


# --- Assets ---


@router.get("/assets")
async def list_assets(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"assets": [a.model_dump(mode="json") for a in workspace.assets.values()]}


@router.post("/assets", status_code=201)
async def create_asset(
    req: CreateAssetRequest, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    asset = workspace.create_asset(req.name, req.asset_type_id, req.location)
    return {"asset": asset.model_dump(mode="json")}


@router.put("/assets/{asset_id}")
async def update_asset(
    asset_id: str,
    asset: Asset,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Replace an asset; a rename is propagated to user assignments."""
    if asset.id != asset_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")
    saved = workspace.update_asset(asset)
    return {"asset": saved.model_dump(mode="json")}


@router.delete("/assets/{asset_id}")
async def delete_asset(
    asset_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, str]:
    workspace.delete_asset(asset_id)
    return {"status": "deleted", "id": asset_id}


# --- Permission queries ---


def _subject(user: User, user_id: str | None, workspace: Workspace) -> User:
    """The user being asked about; only admins may ask about others."""
    if user_id is None or user_id == user.id:
        return user
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Only admins may inspect other users")
    return workspace.get_user(user_id)


@router.get("/check")
async def check_permission(
    asset_id: str,
    permission_id: str,
    user_id: str | None = Query(default=None),
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    subject = _subject(user, user_id, workspace)
    allowed = workspace.has_permission(subject.id, asset_id, permission_id)
    return {
        "user_id": subject.id,
        "asset_id": asset_id,
        "permission_id": permission_id,
        "allowed": allowed,
    }


@router.get("/pages")
async def visible_pages(
    asset_id: str,
    user_id: str | None = Query(default=None),
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Navigation pages visible at an asset."""
    subject = _subject(user, user_id, workspace)
    return {"asset_id": asset_id, "pages": workspace.visible_pages(subject.id, asset_id)}


@router.get("/users/{user_id}/effective")
async def effective_permissions(
    user_id: str,
    asset_id: str,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    resolved = workspace.effective_permissions(user_id, asset_id)
    return {
        "user_id": user_id,
        "asset_id": asset_id,
        "permissions": [
            {"permission_id": p.permission_id, "allowed": p.allowed, "source": str(p.source)}
            for p in resolved
        ],
    }


@router.put("/users/{user_id}/overrides")
async def set_override(
    user_id: str,
    update: OverrideUpdate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Grant, deny, or (with ``value: null``) reset an override."""
    saved = workspace.set_override(user_id, update.asset_id, update.permission_id, update.value)
    return {"overrides": [o.model_dump(mode="json") for o in saved.overrides]}
