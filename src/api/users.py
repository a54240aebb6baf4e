"""User administration API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.access.permissions import ACCESS_ADMIN_PANEL, is_admin
from src.api.auth import require_global_permission, require_user
from src.api.deps import get_workspace
from src.core.models import Assignment, User, UserPermissionOverride
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])

_workspace_dep = Depends(get_workspace)
_user_dep = Depends(require_user)
_admin_dep = Depends(require_global_permission(ACCESS_ADMIN_PANEL))


class SaveUserRequest(BaseModel):
    first_name: str
    last_name: str
    username: str
    email: str
    is_active: bool = True
    assignments: list[Assignment] = Field(default_factory=list)
    global_permissions: list[str] = Field(default_factory=list)
    overrides: list[UserPermissionOverride] = Field(default_factory=list)
    password: str | None = Field(default=None, min_length=1, max_length=128)


class ChangePasswordRequest(BaseModel):
    new_password: str = Field(max_length=128)
    confirm_password: str = Field(max_length=128)
    old_password: str | None = None


@router.get("")
async def list_users(
    _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"users": [u.model_dump(mode="json") for u in workspace.users.values()]}


@router.get("/{user_id}")
async def get_user(
    user_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"user": workspace.get_user(user_id).model_dump(mode="json")}


@router.put("/{user_id}")
async def save_user(
    user_id: str,
    req: SaveUserRequest,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Insert or replace a user; the stored hash is kept unless a password is sent."""
    user = User(id=user_id, **req.model_dump(exclude={"password"}))
    saved = workspace.save_user(user, password=req.password)
    return {"user": saved.model_dump(mode="json")}


@router.post("/{user_id}/password")
async def change_password(
    user_id: str,
    req: ChangePasswordRequest,
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, str]:
    """Self-service change needs the current password; admins may reset others."""
    if user_id == user.id:
        if req.old_password is None:
            raise HTTPException(status_code=422, detail="Current password is required")
        old_password: str | None = req.old_password
    elif is_admin(user):
        old_password = None
    else:
        raise HTTPException(status_code=403, detail="Only admins may reset other passwords")

    workspace.change_password(user_id, req.new_password, req.confirm_password, old_password)
    return {"status": "password_changed"}
