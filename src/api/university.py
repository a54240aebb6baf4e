"""University API: courses, learning paths, completions and certifications."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from src.access.permissions import ACCESS_ADMIN_PANEL, is_admin
from src.api.auth import require_global_permission, require_user
from src.api.deps import get_workspace
from src.config import get_settings
from src.core.models import LearningPath, UniversityCourse, User
from src.core.workspace import Workspace
from src.university.expirations import ExpiryReport, find_expiring

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/university", tags=["university"])

_workspace_dep = Depends(get_workspace)
_user_dep = Depends(require_user)
_admin_dep = Depends(require_global_permission(ACCESS_ADMIN_PANEL))


class CompleteCourseRequest(BaseModel):
    user_id: str | None = None  # defaults to the caller


def _self_or_admin(user: User, user_id: str) -> None:
    if user_id != user.id and not is_admin(user):
        raise HTTPException(status_code=403, detail="Only admins may act for other users")


def _report_to_dict(report: ExpiryReport) -> dict[str, Any]:
    return {
        "enrolled_count": report.enrolled_count,
        "notices": [
            {
                "certification_id": n.certification.id,
                "user_id": n.certification.user_id,
                "course_id": n.certification.course_id,
                "expiration_date": n.certification.expiration_date,
                "action": str(n.action),
                "user_email": n.user_email,
                "course_title": n.course_title,
                "enrollment_id": n.enrollment_id,
            }
            for n in report.notices
        ],
    }


@router.get("/courses")
async def list_courses(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"courses": [c.model_dump(mode="json") for c in workspace.courses.values()]}


@router.put("/courses/{course_id}")
async def save_course(
    course_id: str,
    course: UniversityCourse,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    if course.id != course_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")
    return {"course": workspace.save_course(course).model_dump(mode="json")}


@router.get("/paths")
async def list_paths(
    _: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    return {"paths": [p.model_dump(mode="json") for p in workspace.learning_paths.values()]}


@router.put("/paths/{path_id}")
async def save_path(
    path_id: str,
    path: LearningPath,
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    if path.id != path_id:
        raise HTTPException(status_code=400, detail="Path id does not match body id")
    return {"path": workspace.save_learning_path(path).model_dump(mode="json")}


@router.post("/courses/{course_id}/complete")
async def complete_course(
    course_id: str,
    req: CompleteCourseRequest,
    user: User = _user_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Record a completion and auto-complete matching Learning Module tasks."""
    learner_id = req.user_id or user.id
    _self_or_admin(user, learner_id)
    result = workspace.on_course_completed(course_id, learner_id)
    return {
        "enrollment": result.enrollment.model_dump(mode="json"),
        "certification": (
            result.certification.model_dump(mode="json") if result.certification else None
        ),
        "completed_tasks": [
            {"project_id": pid, "task_id": tid} for pid, tid in result.completed_tasks
        ],
    }


@router.get("/users/{user_id}/enrollments")
async def user_enrollments(
    user_id: str, user: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    _self_or_admin(user, user_id)
    return {"enrollments": [e.model_dump(mode="json") for e in workspace.enrollments_for(user_id)]}


@router.get("/users/{user_id}/certifications")
async def user_certifications(
    user_id: str, user: User = _user_dep, workspace: Workspace = _workspace_dep
) -> dict[str, Any]:
    _self_or_admin(user, user_id)
    certs = workspace.certifications_for(user_id)
    return {"certifications": [c.model_dump(mode="json") for c in certs]}


@router.get("/certifications/expiring")
async def expiring_certifications(
    days: int | None = Query(default=None, ge=0),
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Certifications expiring within the window; read-only."""
    window = get_settings().workforce.cert_expiry_window_days if days is None else days
    expiring = find_expiring(workspace.certifications, workspace.now(), window)
    return {
        "window_days": window,
        "certifications": [c.model_dump(mode="json") for c in expiring],
    }


@router.post("/certifications/check-expirations")
async def check_expirations(
    days: int | None = Query(default=None, ge=0),
    _: User = _admin_dep,
    workspace: Workspace = _workspace_dep,
) -> dict[str, Any]:
    """Open recertification enrollments for expiring certifications."""
    window = get_settings().workforce.cert_expiry_window_days if days is None else days
    report = workspace.check_certification_expirations(window)
    return {"window_days": window, **_report_to_dict(report)}
