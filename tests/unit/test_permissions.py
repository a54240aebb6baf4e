"""Unit tests for asset-scoped permission resolution."""

from __future__ import annotations

from src.access.permissions import (
    ACCESS_ADMIN_PANEL,
    PermissionSource,
    can_launch_template,
    effective_permissions,
    has_global_permission,
    has_permission,
    remove_position,
    resolve_permission,
    set_override,
    set_page_access,
    set_permission,
    template_applies_to_asset,
    visible_pages,
)
from src.core.models import (
    AccessPermissions,
    Asset,
    AssetTypeConfig,
    ProjectTemplate,
    User,
    UserPermissionOverride,
)


class TestHasPermission:
    """Override → position matrix → False."""

    def test_matrix_grants(
        self, manager: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        assert has_permission(manager, store, restaurant_config, "perm-pnl")

    def test_matrix_denies(
        self, crew: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        assert not has_permission(crew, store, restaurant_config, "perm-pnl")

    def test_missing_matrix_entry_is_false(
        self, crew: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        assert not has_permission(crew, store, restaurant_config, "perm-sales")

    def test_override_false_beats_matrix_true(
        self, manager: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        manager.overrides.append(
            UserPermissionOverride(
                asset_id=store.id, permission_id="perm-pnl", has_permission=False
            )
        )
        result = resolve_permission(manager, store, restaurant_config, "perm-pnl")
        assert result.allowed is False
        assert result.source == PermissionSource.OVERRIDE

    def test_override_true_beats_matrix_false(
        self, crew: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        crew.overrides.append(
            UserPermissionOverride(
                asset_id=store.id, permission_id="perm-pnl", has_permission=True
            )
        )
        assert has_permission(crew, store, restaurant_config, "perm-pnl")

    def test_override_at_other_asset_ignored(
        self, manager: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        manager.overrides.append(
            UserPermissionOverride(
                asset_id="asset-2", permission_id="perm-pnl", has_permission=False
            )
        )
        assert has_permission(manager, store, restaurant_config, "perm-pnl")

    def test_no_assignment_at_asset(
        self, manager: User, restaurant_config: AssetTypeConfig
    ) -> None:
        other = Asset(id="asset-2", name="Cafe #2", asset_type_id="type-restaurant")
        assert not has_permission(manager, other, restaurant_config, "perm-pnl")

    def test_unknown_asset_or_config(
        self, manager: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        assert not has_permission(manager, None, restaurant_config, "perm-pnl")
        assert not has_permission(manager, store, None, "perm-pnl")
        assert not has_permission(None, store, restaurant_config, "perm-pnl")

    def test_config_of_other_asset_type(self, manager: User, store: Asset) -> None:
        hotel = AssetTypeConfig(
            id="type-hotel", name="Hotel", permission_matrix={"pos-sm": {"perm-pnl": True}}
        )
        assert not has_permission(manager, store, hotel, "perm-pnl")

    def test_effective_permissions_report_sources(
        self, manager: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        manager.overrides.append(
            UserPermissionOverride(
                asset_id=store.id, permission_id="perm-sales", has_permission=False
            )
        )
        resolved = {
            p.permission_id: p for p in effective_permissions(manager, store, restaurant_config)
        }
        assert set(resolved) == {"perm-pnl", "perm-sales"}
        assert resolved["perm-pnl"].source == PermissionSource.POSITION
        assert resolved["perm-sales"].source == PermissionSource.OVERRIDE
        assert resolved["perm-sales"].allowed is False


class TestVisiblePages:
    def test_pages_follow_matrix(
        self, manager: User, crew: User, store: Asset, restaurant_config: AssetTypeConfig
    ) -> None:
        assert visible_pages(manager, store, restaurant_config) == ["page-reports"]
        assert visible_pages(crew, store, restaurant_config) == ["page-dash"]


class TestGlobalPermissions:
    def test_flag_present(self, manager: User) -> None:
        manager.global_permissions.append(ACCESS_ADMIN_PANEL)
        assert has_global_permission(manager, ACCESS_ADMIN_PANEL)

    def test_flag_absent(self, manager: User) -> None:
        assert not has_global_permission(manager, ACCESS_ADMIN_PANEL)
        assert not has_global_permission(None, ACCESS_ADMIN_PANEL)


class TestLaunchAuthorization:
    def _template(self, **access: list[str]) -> ProjectTemplate:
        return ProjectTemplate(
            id="tpl",
            name="Onboarding",
            applies_to_asset_type_ids=["type-restaurant"],
            access_permissions=AccessPermissions(**access),
        )

    def test_listed_user(self, crew: User) -> None:
        assert can_launch_template(crew, self._template(user_ids=[crew.id]))

    def test_held_position(self, manager: User, crew: User) -> None:
        template = self._template(position_ids=["pos-sm"])
        assert can_launch_template(manager, template)
        assert not can_launch_template(crew, template)

    def test_admin_bypass(self, crew: User) -> None:
        crew.global_permissions.append(ACCESS_ADMIN_PANEL)
        assert can_launch_template(crew, self._template())

    def test_asset_allow_list_is_exclusive(self, store: Asset) -> None:
        template = self._template()
        assert template_applies_to_asset(template, store)
        template.applies_to_asset_ids = ["asset-other"]
        assert not template_applies_to_asset(template, store)


class TestBlueprintEditing:
    def test_set_permission_copies(self, restaurant_config: AssetTypeConfig) -> None:
        updated = set_permission(restaurant_config, "pos-crew", "perm-sales", True)
        assert updated.permission_matrix["pos-crew"]["perm-sales"] is True
        assert "perm-sales" not in restaurant_config.permission_matrix["pos-crew"]

    def test_page_toggle_cascades(self, restaurant_config: AssetTypeConfig) -> None:
        updated = set_page_access(restaurant_config, "pos-crew", "page-reports", True)
        row = updated.permission_matrix["pos-crew"]
        assert row["page-reports"] is True
        assert row["perm-pnl"] is True
        assert row["perm-sales"] is True

    def test_remove_position_drops_row(self, restaurant_config: AssetTypeConfig) -> None:
        updated = remove_position(restaurant_config, "pos-crew")
        assert updated.position("pos-crew") is None
        assert "pos-crew" not in updated.permission_matrix


class TestOverrides:
    def test_set_and_replace(self, manager: User) -> None:
        once = set_override(manager, "asset-1", "perm-pnl", False)
        twice = set_override(once, "asset-1", "perm-pnl", True)
        assert len(twice.overrides) == 1
        assert twice.overrides[0].has_permission is True

    def test_inherit_removes_record(self, manager: User) -> None:
        granted = set_override(manager, "asset-1", "perm-pnl", True)
        reset = set_override(granted, "asset-1", "perm-pnl", None)
        assert reset.overrides == []
        assert manager.overrides == []
