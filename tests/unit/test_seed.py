"""Tests for the demo workspace seed."""

from __future__ import annotations

from src.core.models import TaskStatus
from src.core.workspace import Workspace


class TestSeedDemoData:
    def test_counts(self, demo_workspace: Workspace) -> None:
        assert set(demo_workspace.asset_type_configs) == {"type-restaurant", "type-hotel"}
        assert len(demo_workspace.assets) == 4
        assert len(demo_workspace.users) == 5
        assert len(demo_workspace.project_templates) == 3
        assert len(demo_workspace.courses) == 4
        assert len(demo_workspace.action_items) == 4

    def test_assignments_carry_display_names(self, demo_workspace: Workspace) -> None:
        alex = demo_workspace.get_user("user-alex-chen")
        assert alex.assignments[0].asset_name == "Lumina Cafe #0142"
        assert alex.assignments[0].position_title == "Store Manager"

    def test_override_revokes_pnl(self, demo_workspace: Workspace) -> None:
        store = "asset-store-0142"
        assert not demo_workspace.has_permission("user-alex-chen", store, "perm-reports-view-pnl")
        assert demo_workspace.has_permission("user-alex-chen", store, "perm-reports-view-sales")

    def test_onboarding_project_launched(self, demo_workspace: Workspace) -> None:
        (project,) = demo_workspace.active_projects.values()
        assert project.name == "Onboard Maria Garcia"
        assert project.task("t1-1").status == TaskStatus.COMPLETED
        assert project.task("t1-1").completed_by == "Alex Chen"
        assert project.task("t1-2").assignment.user_ids == ["user-maria-garcia"]

    def test_admin_can_log_in(self, demo_workspace: Workspace) -> None:
        assert demo_workspace.authenticate("admin", "admin").id == "user-admin"
