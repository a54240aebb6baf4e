"""Unit tests for the task completion state machine."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.core.models import ActionItem, ActiveProject, TaskStatus, User
from src.projects.task_state import toggle_action_item, toggle_project_task, toggle_task


@pytest.fixture
def project(now: datetime) -> ActiveProject:
    return ActiveProject.model_validate(
        {
            "id": "proj-1",
            "name": "Onboarding",
            "template_id": "tpl-1",
            "primary_asset_id": "asset-1",
            "launched_at": now,
            "launched_by": "user-sm",
            "tasks": [
                {"id": "t1", "type": "Task", "title": "Paperwork", "absolute_due_date": now},
                {
                    "id": "t2",
                    "type": "Discussion",
                    "title": "Kickoff",
                    "status": "Blocked",
                    "absolute_due_date": now,
                },
            ],
        }
    )


class TestToggleTask:
    def test_pending_to_completed(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        task = toggle_task(project.tasks[0], manager, now)
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == now
        assert task.completed_by == "Alex Chen"

    def test_toggle_twice_restores_pending(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        once = toggle_task(project.tasks[0], manager, now)
        twice = toggle_task(once, manager, now + timedelta(hours=1))
        assert twice.status == TaskStatus.PENDING
        assert twice.completed_at is None
        assert twice.completed_by is None

    def test_blocked_completes(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        assert toggle_task(project.tasks[1], manager, now).status == TaskStatus.COMPLETED

    def test_original_not_mutated(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        toggle_task(project.tasks[0], manager, now)
        assert project.tasks[0].status == TaskStatus.PENDING


class TestToggleProjectTask:
    def test_only_target_changes(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        updated = toggle_project_task(project, "t1", manager, now)
        assert updated is not None
        assert updated.task("t1").status == TaskStatus.COMPLETED
        assert updated.task("t2").status == TaskStatus.BLOCKED
        assert project.task("t1").status == TaskStatus.PENDING

    def test_unknown_task(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        assert toggle_project_task(project, "missing", manager, now) is None

    def test_project_status_not_recomputed(
        self, project: ActiveProject, manager: User, now: datetime
    ) -> None:
        updated = toggle_project_task(project, "t1", manager, now)
        updated = toggle_project_task(updated, "t2", manager, now)
        assert updated.status == project.status


class TestToggleActionItem:
    def test_symmetric(self, now: datetime) -> None:
        item = ActionItem(id="a1", description="Fix faucet", due_date=now)
        done = toggle_action_item(item, now)
        assert done.status == TaskStatus.COMPLETED
        assert done.completed_at == now
        undone = toggle_action_item(done, now)
        assert undone.status == TaskStatus.PENDING
        assert undone.completed_at is None
