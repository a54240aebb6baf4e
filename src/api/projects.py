"""Action center API: launching projects, completing tasks, the task workspace."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from src.access.permissions import is_admin
from src.api.auth import require_user
from src.api.deps import get_workspace
from src.core.models import TaskAssignment, User, UtcDatetime
from src.core.workspace import Workspace
from src.projects.task_views import DateFilter, TaskFilters, TypeFilter, is_assigned_to

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/projects", tags=["projects"])

_workspace_dep = Depends(get_workspace)
_user_dep = Depends(require_user)


class LaunchRequest(BaseModel):
    template_id: str
    primary_asset_id: str
    project_name: str | None = None
    placeholder_choices: dict[str, TaskAssignment] = {}


class CreateActionItemRequest(BaseModel):
    description: str
    due_date: UtcDatetime


@router.get("/launchable")
async def launchable_templates(
    asset_id: str, user: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    """Templates the caller may launch at the asset."""
    templates = workspace.launchable_templates(user.id, asset_id)
    return {"templates": [t.model_dump(mode="json") for t in templates]}


@router.post("", status_code=201)
async def launch(
    req: LaunchRequest, user: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    project = workspace.launch_project(
        user.id,
        req.template_id,
        req.primary_asset_id,
        project_name=req.project_name,
        placeholder_choices=req.placeholder_choices,
    )
    return {"project": project.model_dump(mode="json")}


@router.get("")
async def list_projects(
    asset_id: str | None = Query(default=None),
    _: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    projects = [
        p
        for p in workspace.active_projects.values()
        if asset_id is None or p.primary_asset_id == asset_id
    ]
    return {"projects": [p.model_dump(mode="json") for p in projects]}


@router.get("/workspace")
async def task_workspace(
    type: TypeFilter = "all",
    date: DateFilter = "all",
    asset_id: str | None = None,
    assignee: str = "me",
    keyword: str = "",
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Unified task list with due-date buckets."""
    if assignee not in ("me", "all"):
        raise HTTPException(status_code=422, detail="assignee must be 'me' or 'all'")
    filters = TaskFilters(
        type=type, date=date, asset_id=asset_id, assignee=assignee, keyword=keyword
    )
    tasks, buckets = workspace.task_view(user.id, filters)
    return {
        "tasks": [t.model_dump(mode="json") for t in tasks],
        "buckets": buckets.model_dump(mode="json"),
        "overdue_count": buckets.overdue_count,
        "due_today_count": buckets.due_today_count,
    }


@router.get("/{project_id}")
async def get_project(
    project_id: str, _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"project": workspace.get_project(project_id).model_dump(mode="json")}


@router.post("/{project_id}/tasks/{task_id}/toggle")
async def toggle_task(
    project_id: str,
    task_id: str,
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Flip a task between Completed and Pending. Assignees and admins only."""
    task = workspace.get_project(project_id).task(task_id)
    if task is not None and not (is_assigned_to(task.assignment, user) or is_admin(user)):
        raise HTTPException(status_code=403, detail="Task is not assigned to you")
    project = workspace.toggle_task(user.id, project_id, task_id)
    return {"project": project.model_dump(mode="json")}


# --- Standalone action items ---


@router.post("/action-items", status_code=201)
async def create_action_item(
    req: CreateActionItemRequest, user: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    item = workspace.create_action_item(user.id, req.description, req.due_date)
    return {"action_item": item.model_dump(mode="json")}


@router.post("/action-items/{item_id}/toggle")
async def toggle_action_item(
    item_id: str, _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    item = workspace.toggle_action_item(item_id)
    return {"action_item": item.model_dump(mode="json")}
