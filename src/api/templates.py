"""Template store API: project templates and recurring rules."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.access.permissions import ACCESS_ADMIN_PANEL
from src.api.auth import require_global_permission, require_user
from src.api.deps import get_workspace
from src.core.models import (
    ProjectTemplate,
    RecurringProjectTemplate,
    RecurringTaskTemplate,
    User,
)
from src.core.workspace import Workspace

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/templates", tags=["templates"])

_workspace_dep = Depends(get_workspace)
_user_dep = Depends(require_user)
_admin_dep = Depends(require_global_permission(ACCESS_ADMIN_PANEL))


class ReorderRequest(BaseModel):
    task_ids: list[str]


def _check_id(path_id: str, body_id: str) -> None:
    if path_id != body_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")


# --- Project templates ---


@router.get("/projects")
async def list_project_templates(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    templates = [t.model_dump(mode="json") for t in workspace.project_templates.values()]
    return {"templates": templates}


@router.get("/projects/{template_id}")
async def get_project_template(
    template_id: str, _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"template": workspace.get_template(template_id).model_dump(mode="json")}


@router.put("/projects/{template_id}")
async def save_project_template(
    template_id: str,
    template: ProjectTemplate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Insert or replace a template; ``last_updated`` is set server-side."""
    _check_id(template_id, template.id)
    saved = workspace.save_project_template(template)
    return {"template": saved.model_dump(mode="json")}


@router.delete("/projects/{template_id}")
async def delete_project_template(
    template_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, str]:
    workspace.delete_project_template(template_id)
    return {"status": "deleted", "id": template_id}


@router.post("/projects/{template_id}/duplicate", status_code=201)
async def duplicate_project_template(
    template_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    copy = workspace.duplicate_project_template(template_id)
    return {"template": copy.model_dump(mode="json")}


@router.put("/projects/{template_id}/order")
async def reorder_tasks(
    template_id: str,
    req: ReorderRequest,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    saved = workspace.reorder_template_tasks(template_id, req.task_ids)
    return {"template": saved.model_dump(mode="json")}


# --- Recurring rules ---


@router.get("/recurring-tasks")
async def list_recurring_tasks(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    rules = [t.model_dump(mode="json") for t in workspace.recurring_task_templates.values()]
    return {"templates": rules}


@router.put("/recurring-tasks/{template_id}")
async def save_recurring_task(
    template_id: str,
    template: RecurringTaskTemplate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    _check_id(template_id, template.id)
    saved = workspace.save_recurring_task_template(template)
    return {"template": saved.model_dump(mode="json")}


@router.delete("/recurring-tasks/{template_id}")
async def delete_recurring_task(
    template_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, str]:
    workspace.delete_recurring_task_template(template_id)
    return {"status": "deleted", "id": template_id}


@router.get("/recurring-projects")
async def list_recurring_projects(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    rules = [t.model_dump(mode="json") for t in workspace.recurring_project_templates.values()]
    return {"templates": rules}


@router.put("/recurring-projects/{template_id}")
async def save_recurring_project(
    template_id: str,
    template: RecurringProjectTemplate,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    _check_id(template_id, template.id)
    saved = workspace.save_recurring_project_template(template)
    return {"template": saved.model_dump(mode="json")}


@router.delete("/recurring-projects/{template_id}")
async def delete_recurring_project(
    template_id: str, _: User = _admin_dep, workspace: Workspace = _workspace_dep
) -> dict[str, str]:
    workspace.delete_recurring_project_template(template_id)
    return {"status": "deleted", "id": template_id}
