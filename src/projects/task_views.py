"""Unified task list: project tasks and standalone action items.

Merges both sources into ``DisplayTask`` rows, applies workspace filters
and groups open tasks into due-date buckets.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field

from src.core.models import (
    ActionItem,
    ActiveProject,
    Asset,
    TaskAssignment,
    TaskSourceType,
    TaskStatus,
    TaskType,
    User,
)

TypeFilter = Literal["all", "tasks", "recurring", "projects"]
DateFilter = Literal["all", "overdue", "today"]


class DisplayTask(BaseModel):
    id: str
    title: str
    status: TaskStatus
    assignment: TaskAssignment
    absolute_due_date: datetime
    completed_at: datetime | None = None
    source_type: TaskSourceType
    project_id: str | None = None
    project_name: str | None = None
    original_task_id: str | None = None
    original_action_item_id: str | None = None
    is_recurring_instance: bool = False
    asset_id: str | None = None
    asset_name: str | None = None
    attachment_count: int | None = None
    comment_count: int | None = None
    sop_link: str | None = None


class TaskFilters(BaseModel):
    type: TypeFilter = "all"
    date: DateFilter = "all"
    asset_id: str | None = None
    assignee: Literal["me", "all"] = "me"
    keyword: str = ""


class TaskBuckets(BaseModel):
    overdue: list[DisplayTask] = Field(default_factory=list)
    due_today: list[DisplayTask] = Field(default_factory=list)
    next_7_days: list[DisplayTask] = Field(default_factory=list)
    upcoming: list[DisplayTask] = Field(default_factory=list)
    completed_today: list[DisplayTask] = Field(default_factory=list)

    @property
    def overdue_count(self) -> int:
        return len(self.overdue)

    @property
    def due_today_count(self) -> int:
        return len(self.due_today)


def unified_tasks(
    projects: Iterable[ActiveProject],
    action_items: Iterable[ActionItem],
    viewer: User,
    assets: Mapping[str, Asset],
) -> list[DisplayTask]:
    """Flatten project tasks and action items into display rows.

    Action items have no assignment of their own; they are shown as
    assigned to the viewer.
    """
    rows: list[DisplayTask] = []
    for project in projects:
        asset = assets.get(project.primary_asset_id)
        for task in project.tasks:
            rows.append(
                DisplayTask(
                    id=f"proj-task-{project.id}-{task.id}",
                    title=task.title,
                    status=task.status,
                    assignment=task.assignment,
                    absolute_due_date=task.absolute_due_date,
                    completed_at=task.completed_at,
                    source_type=task.source_type,
                    project_id=project.id,
                    project_name=project.name,
                    original_task_id=task.id,
                    is_recurring_instance=task.type == TaskType.RECURRING_TASK,
                    asset_id=project.primary_asset_id,
                    asset_name=asset.name if asset else None,
                    attachment_count=task.attachment_count,
                    comment_count=task.comment_count,
                    sop_link=task.sop_link,
                )
            )

    for item in action_items:
        rows.append(
            DisplayTask(
                id=f"action-item-{item.id}",
                title=item.description,
                status=item.status,
                assignment=TaskAssignment(user_ids=[viewer.id]),
                absolute_due_date=item.due_date,
                completed_at=item.completed_at,
                source_type=TaskSourceType(item.source_type),
                original_action_item_id=item.id,
                is_recurring_instance=item.source_type == TaskSourceType.RECURRING_TASK,
                asset_name="General",
                attachment_count=item.attachment_count,
                comment_count=item.comment_count,
                sop_link=item.sop_link,
            )
        )
    return rows


def is_assigned_to(assignment: TaskAssignment, user: User) -> bool:
    """Directly by user id, or through any position the user holds."""
    if user.id in assignment.user_ids:
        return True
    held = set(user.position_ids)
    return any(role_id in held for role_id in assignment.role_ids)


def _is_today(moment: datetime, now: datetime) -> bool:
    return moment.date() == now.date()


def _is_overdue(moment: datetime, now: datetime) -> bool:
    return moment < now and not _is_today(moment, now)


def filter_tasks(
    tasks: Iterable[DisplayTask], filters: TaskFilters, viewer: User, now: datetime
) -> list[DisplayTask]:
    keyword = filters.keyword.lower()
    result: list[DisplayTask] = []
    for task in tasks:
        if filters.date == "overdue" and (
            task.status == TaskStatus.COMPLETED or not _is_overdue(task.absolute_due_date, now)
        ):
            continue
        if filters.date == "today" and (
            task.status == TaskStatus.COMPLETED or not _is_today(task.absolute_due_date, now)
        ):
            continue
        if keyword and keyword not in task.title.lower() and keyword not in (
            task.project_name or ""
        ).lower():
            continue
        if filters.type == "tasks" and task.source_type != TaskSourceType.STANDALONE:
            continue
        if filters.type == "recurring" and task.source_type != TaskSourceType.RECURRING_TASK:
            continue
        if filters.type == "projects" and task.project_id is None:
            continue
        if filters.assignee == "me" and not is_assigned_to(task.assignment, viewer):
            continue
        # Standalone items carry no asset and are never filtered out by asset
        if filters.asset_id and task.project_id and task.asset_id != filters.asset_id:
            continue
        result.append(task)
    return result


def bucket_tasks(tasks: Iterable[DisplayTask], now: datetime) -> TaskBuckets:
    """Group tasks by urgency relative to ``now``."""
    buckets = TaskBuckets()
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ahead = now + timedelta(days=7)

    for task in sorted(tasks, key=lambda t: t.absolute_due_date):
        due = task.absolute_due_date
        if task.status == TaskStatus.COMPLETED:
            if task.completed_at is not None and task.completed_at >= start_of_today:
                buckets.completed_today.append(task)
            continue
        if _is_overdue(due, now):
            buckets.overdue.append(task)
        elif _is_today(due, now):
            buckets.due_today.append(task)
        elif due <= week_ahead:
            buckets.next_7_days.append(task)
        else:
            buckets.upcoming.append(task)
    return buckets
