"""Project launch engine: ProjectTemplate → ActiveProject.

Pure transformation. Callers are responsible for authorization
(``can_launch_template``) and for supplying a fresh project id.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from src.core.models import (
    ACTIVE_TASK_CLASSES,
    ActiveProject,
    ProjectStatus,
    ProjectTemplate,
    TaskAssignment,
    TaskSourceType,
    TaskStatus,
    TaskType,
)
from src.projects.due_dates import resolve_due_date
from src.projects.placeholders import resolve_assignment

logger = logging.getLogger(__name__)


def activate_task(task: Any, answers: Mapping[str, TaskAssignment], anchor: datetime) -> Any:
    """Build the active counterpart of one template task."""
    active_cls = ACTIVE_TASK_CLASSES[task.type]
    data = task.model_dump()
    data.update(
        assignment=resolve_assignment(task.assignment, answers).model_dump(),
        absolute_due_date=resolve_due_date(anchor, task.due_date),
        status=TaskStatus.PENDING,
        completed_at=None,
        completed_by=None,
        source_type=(
            TaskSourceType.RECURRING_TASK
            if task.type == TaskType.RECURRING_TASK
            else TaskSourceType.PROJECT
        ),
        attachment_count=task.attachment_count or 0,
        comment_count=task.comment_count or 0,
    )
    return active_cls.model_validate(data)


def launch_project(
    template: ProjectTemplate,
    primary_asset_id: str,
    project_name: str,
    answers: Mapping[str, TaskAssignment],
    launched_by: str,
    now: datetime,
    project_id: str,
) -> ActiveProject:
    """Instantiate ``template`` at ``primary_asset_id``.

    Every task gets resolved assignments, an absolute due date anchored at
    ``now`` and a clean Pending state. Task objects are rebuilt from dumps,
    so two launches of the same template never share state.
    """
    tasks = [activate_task(task, answers, now) for task in template.tasks]
    project = ActiveProject(
        id=project_id,
        name=project_name,
        template_id=template.id,
        primary_asset_id=primary_asset_id,
        status=ProjectStatus.ON_TRACK,
        launched_at=now,
        launched_by=launched_by,
        tasks=tasks,
    )
    logger.info(
        "Launched project %s from template %s with %d task(s)",
        project.id,
        template.id,
        len(tasks),
        extra={"project_id": project.id, "template_id": template.id, "asset_id": primary_asset_id},
    )
    return project
