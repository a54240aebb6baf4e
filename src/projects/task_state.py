"""Task completion state machine.

Toggling is symmetric:
  Pending / In Progress / Blocked → Completed → Pending
Completion stamps the time and the actor's display name; reverting clears
both. Project-level status is set at launch and never recomputed here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from src.core.models import ActionItem, ActiveProject, TaskStatus, User

logger = logging.getLogger(__name__)


def mark_completed(task: Any, actor: User, now: datetime) -> None:
    """Stamp completion in place (callers pass a fresh copy)."""
    task.status = TaskStatus.COMPLETED
    task.completed_at = now
    task.completed_by = actor.display_name


def toggle_task(task: Any, actor: User, now: datetime) -> Any:
    """Return a toggled copy of an active project task."""
    updated = task.model_copy(deep=True)
    if updated.status == TaskStatus.COMPLETED:
        updated.status = TaskStatus.PENDING
        updated.completed_at = None
        updated.completed_by = None
    else:
        mark_completed(updated, actor, now)
    return updated


def toggle_project_task(
    project: ActiveProject, task_id: str, actor: User, now: datetime
) -> ActiveProject | None:
    """Return a copy of the project with one task toggled, or None if absent."""
    if project.task(task_id) is None:
        return None
    updated = project.model_copy(deep=True)
    updated.tasks = [
        toggle_task(t, actor, now) if t.id == task_id else t for t in updated.tasks
    ]
    new_status = updated.task(task_id).status
    logger.info(
        "Task %s in project %s → %s",
        task_id,
        project.id,
        new_status,
        extra={"project_id": project.id, "user_id": actor.id},
    )
    return updated


def toggle_action_item(item: ActionItem, now: datetime) -> ActionItem:
    """Standalone items only track ``completed_at``."""
    updated = item.model_copy(deep=True)
    if updated.status == TaskStatus.COMPLETED:
        updated.status = TaskStatus.PENDING
        updated.completed_at = None
    else:
        updated.status = TaskStatus.COMPLETED
        updated.completed_at = now
    return updated
