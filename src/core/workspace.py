"""Workspace: the application service owning every entity collection.

All mutations run under one re-entrant lock and swap in freshly built
models (copy-on-write), so each mutation is atomic and readers never see
a half-applied change. Last writer wins.

Collections are upserted by id with whole-entity replacement: saving an
unknown id inserts, saving a known id replaces.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime

from src.access import permissions
from src.access.passwords import hash_password, verify_password
from src.core.errors import (
    ActionItemNotFoundError,
    AssetNotFoundError,
    AssetTypeInUseError,
    AssetTypeNotFoundError,
    AuthenticationError,
    CourseNotFoundError,
    PositionInUseError,
    ProjectNotFoundError,
    TaskNotFoundError,
    TemplateNotFoundError,
    UnauthorizedError,
    UserNotFoundError,
    ValidationFailedError,
)
from src.core.models import (
    ActionItem,
    ActiveProject,
    Address,
    Asset,
    AssetStatus,
    AssetTypeConfig,
    LearningPath,
    ProjectTemplate,
    RecurringProjectTemplate,
    RecurringTaskTemplate,
    TaskAssignment,
    UniversityCourse,
    User,
    UserCertification,
    UserEnrollment,
)
from src.projects.launcher import launch_project
from src.projects.placeholders import placeholder_answers
from src.projects.task_state import toggle_action_item, toggle_project_task
from src.projects.task_views import (
    DisplayTask,
    TaskBuckets,
    TaskFilters,
    bucket_tasks,
    filter_tasks,
    unified_tasks,
)
from src.university.completion import ASSIGNMENT_POLICIES, CourseCompletionResult, complete_course
from src.university.expirations import ExpiryReport, check_expirations

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[str], str]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id(prefix: str) -> str:
    """Globally unique, never-reused entity id."""
    return f"{prefix}-{uuid.uuid4().hex}"


class Workspace:
    """In-memory domain state plus the operations the UI layer calls."""

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
        propagation_policy: str = "position",
        bcrypt_rounds: int = 12,
    ) -> None:
        if propagation_policy not in ASSIGNMENT_POLICIES:
            msg = f"Unknown propagation policy: {propagation_policy!r}"
            raise ValueError(msg)
        self._clock = clock
        self._new_id = id_factory
        self._policy = ASSIGNMENT_POLICIES[propagation_policy]
        self._bcrypt_rounds = bcrypt_rounds
        self._lock = threading.RLock()

        self.asset_type_configs: dict[str, AssetTypeConfig] = {}
        self.assets: dict[str, Asset] = {}
        self.users: dict[str, User] = {}
        self.project_templates: dict[str, ProjectTemplate] = {}
        self.recurring_task_templates: dict[str, RecurringTaskTemplate] = {}
        self.recurring_project_templates: dict[str, RecurringProjectTemplate] = {}
        self.active_projects: dict[str, ActiveProject] = {}
        self.action_items: dict[str, ActionItem] = {}
        self.courses: dict[str, UniversityCourse] = {}
        self.learning_paths: dict[str, LearningPath] = {}
        self.enrollments: list[UserEnrollment] = []
        self.certifications: list[UserCertification] = []

    def now(self) -> datetime:
        return self._clock()

    # --- Lookups ---

    def get_user(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_asset(self, asset_id: str) -> Asset:
        asset = self.assets.get(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def get_asset_type_config(self, config_id: str) -> AssetTypeConfig:
        config = self.asset_type_configs.get(config_id)
        if config is None:
            raise AssetTypeNotFoundError(config_id)
        return config

    def get_template(self, template_id: str) -> ProjectTemplate:
        template = self.project_templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def get_project(self, project_id: str) -> ActiveProject:
        project = self.active_projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def get_course(self, course_id: str) -> UniversityCourse:
        course = self.courses.get(course_id)
        if course is None:
            raise CourseNotFoundError(course_id)
        return course

    def config_for_asset(self, asset: Asset) -> AssetTypeConfig | None:
        return self.asset_type_configs.get(asset.asset_type_id)

    # --- Permission queries (never raise) ---

    def has_permission(self, user_id: str, asset_id: str, permission_id: str) -> bool:
        user = self.users.get(user_id)
        asset = self.assets.get(asset_id)
        config = self.config_for_asset(asset) if asset else None
        allowed = permissions.has_permission(user, asset, config, permission_id)
        if not allowed:
            logger.debug(
                "Permission %s denied",
                permission_id,
                extra={"user_id": user_id, "asset_id": asset_id},
            )
        return allowed

    def has_global_permission(self, user_id: str, flag: str) -> bool:
        return permissions.has_global_permission(self.users.get(user_id), flag)

    def can_launch_template(self, user_id: str, template_id: str) -> bool:
        template = self.project_templates.get(template_id)
        if template is None:
            return False
        return permissions.can_launch_template(self.users.get(user_id), template)

    def visible_pages(self, user_id: str, asset_id: str) -> list[str]:
        user = self.users.get(user_id)
        asset = self.assets.get(asset_id)
        config = self.config_for_asset(asset) if asset else None
        if user is None or asset is None or config is None:
            return []
        return permissions.visible_pages(user, asset, config)

    def effective_permissions(
        self, user_id: str, asset_id: str
    ) -> list[permissions.EffectivePermission]:
        user = self.get_user(user_id)
        asset = self.get_asset(asset_id)
        config = self.config_for_asset(asset)
        if config is None:
            return []
        return permissions.effective_permissions(user, asset, config)

    # --- Asset type configs ---

    def _check_positions_held(self, asset_ids: set[str], config: AssetTypeConfig) -> None:
        """Refuse when a user at one of the assets holds a position the config lacks."""
        missing: list[str] = []
        holders: list[str] = []
        for user in self.users.values():
            for assignment in user.assignments:
                if assignment.asset_id not in asset_ids:
                    continue
                if config.position(assignment.position_id) is not None:
                    continue
                if assignment.position_id not in missing:
                    missing.append(assignment.position_id)
                if user.id not in holders:
                    holders.append(user.id)
        if holders:
            logger.warning("Refused change to %s: positions %s still held", config.id, missing)
            raise PositionInUseError(missing, holders)

    def save_asset_type_config(self, config: AssetTypeConfig) -> AssetTypeConfig:
        """Upsert a config. Positions still held by users cannot be dropped."""
        with self._lock:
            in_use = {a.id for a in self.assets.values() if a.asset_type_id == config.id}
            self._check_positions_held(in_use, config)
            stored = config.model_copy(deep=True)
            self.asset_type_configs[stored.id] = stored
            logger.info("Saved asset type config %s", stored.id)
            return stored

    def delete_asset_type_config(self, config_id: str) -> None:
        """Refuse while any asset references the config."""
        with self._lock:
            self.get_asset_type_config(config_id)
            in_use = [a.id for a in self.assets.values() if a.asset_type_id == config_id]
            if in_use:
                logger.warning("Refused to delete asset type %s: in use", config_id)
                raise AssetTypeInUseError(config_id, in_use)
            del self.asset_type_configs[config_id]
            logger.info("Deleted asset type config %s", config_id)

    def set_matrix_permission(
        self, config_id: str, position_id: str, permission_id: str, value: bool
    ) -> AssetTypeConfig:
        with self._lock:
            config = self.get_asset_type_config(config_id)
            return self.save_asset_type_config(
                permissions.set_permission(config, position_id, permission_id, value)
            )

    def set_page_access(
        self, config_id: str, position_id: str, page_id: str, value: bool
    ) -> AssetTypeConfig:
        with self._lock:
            config = self.get_asset_type_config(config_id)
            return self.save_asset_type_config(
                permissions.set_page_access(config, position_id, page_id, value)
            )

    def remove_position(self, config_id: str, position_id: str) -> AssetTypeConfig:
        with self._lock:
            config = self.get_asset_type_config(config_id)
            return self.save_asset_type_config(permissions.remove_position(config, position_id))

    def remove_page(self, config_id: str, page_id: str) -> AssetTypeConfig:
        with self._lock:
            config = self.get_asset_type_config(config_id)
            return self.save_asset_type_config(permissions.remove_page(config, page_id))

    # --- Assets ---

    def create_asset(self, name: str, asset_type_id: str, location: Address | None = None) -> Asset:
        with self._lock:
            if not name.strip():
                raise ValidationFailedError("name", "Asset name is required.")
            self.get_asset_type_config(asset_type_id)
            asset = Asset(
                id=self._new_id("asset"),
                name=name,
                location=location or Address(),
                asset_type_id=asset_type_id,
                status=AssetStatus.ACTIVE,
            )
            self.assets[asset.id] = asset
            logger.info("Created asset %s", asset.id, extra={"asset_id": asset.id})
            return asset

    def update_asset(self, asset: Asset) -> Asset:
        """Replace an asset and refresh the cached asset name on assignments."""
        with self._lock:
            current = self.get_asset(asset.id)
            config = self.get_asset_type_config(asset.asset_type_id)
            if config.id != current.asset_type_id:
                self._check_positions_held({asset.id}, config)
            stored = asset.model_copy(deep=True)
            self.assets[stored.id] = stored

            for user_id, user in list(self.users.items()):
                if not any(a.asset_id == stored.id for a in user.assignments):
                    continue
                updated = user.model_copy(deep=True)
                for assignment in updated.assignments:
                    if assignment.asset_id == stored.id:
                        assignment.asset_name = stored.name
                self.users[user_id] = updated

            logger.info("Updated asset %s", stored.id, extra={"asset_id": stored.id})
            return stored

    def delete_asset(self, asset_id: str) -> None:
        """Delete an asset and every assignment pointing to it."""
        with self._lock:
            self.get_asset(asset_id)
            del self.assets[asset_id]
            for user_id, user in list(self.users.items()):
                if any(a.asset_id == asset_id for a in user.assignments):
                    self.users[user_id] = user.model_copy(
                        update={
                            "assignments": [a for a in user.assignments if a.asset_id != asset_id]
                        },
                        deep=True,
                    )
            logger.info("Deleted asset %s", asset_id, extra={"asset_id": asset_id})

    # --- Users ---

    def _normalize_assignments(self, user: User) -> User:
        """Validate assignments and refresh their display caches."""
        updated = user.model_copy(deep=True)
        for assignment in updated.assignments:
            asset = self.assets.get(assignment.asset_id)
            if asset is None:
                raise ValidationFailedError(
                    "assignments", f"Unknown asset: {assignment.asset_id}"
                )
            config = self.config_for_asset(asset)
            position = config.position(assignment.position_id) if config else None
            if position is None:
                raise ValidationFailedError(
                    "assignments",
                    f"Position {assignment.position_id} does not exist for asset {asset.name}",
                )
            assignment.asset_name = asset.name
            assignment.position_title = position.title
        return updated

    def save_user(self, user: User, password: str | None = None) -> User:
        """Upsert a user. A new password is hashed; otherwise the old hash is kept."""
        with self._lock:
            if not user.first_name.strip() or not user.last_name.strip():
                raise ValidationFailedError("name", "First and last name are required.")
            if not user.username.strip():
                raise ValidationFailedError("username", "Username is required.")
            stored = self._normalize_assignments(user)
            existing = self.users.get(stored.id)
            if password:
                stored.password_hash = hash_password(password, self._bcrypt_rounds)
            elif stored.password_hash is None and existing is not None:
                stored.password_hash = existing.password_hash
            self.users[stored.id] = stored
            logger.info("Saved user %s", stored.id, extra={"user_id": stored.id})
            return stored

    def change_password(
        self,
        user_id: str,
        new_password: str,
        confirm_password: str,
        old_password: str | None = None,
    ) -> None:
        """Change a password; self-service changes must present the current one."""
        with self._lock:
            user = self.get_user(user_id)
            if not new_password:
                raise ValidationFailedError("new_password", "Password is required.")
            if new_password != confirm_password:
                raise ValidationFailedError("confirm_password", "Passwords do not match.")
            if old_password is not None and not verify_password(old_password, user.password_hash):
                raise AuthenticationError("Current password does not match.")
            self.users[user_id] = user.model_copy(
                update={"password_hash": hash_password(new_password, self._bcrypt_rounds)}
            )
            logger.info("Password changed", extra={"user_id": user_id})

    def authenticate(self, identifier: str, password: str) -> User:
        """Log in by username or email (case-insensitive)."""
        needle = identifier.strip().lower()
        for user in self.users.values():
            if needle not in (user.username.lower(), user.email.lower()):
                continue
            if user.is_active and verify_password(password, user.password_hash):
                return user
            break
        raise AuthenticationError("Invalid credentials")

    def set_override(
        self, user_id: str, asset_id: str, permission_id: str, value: bool | None
    ) -> User:
        with self._lock:
            user = self.get_user(user_id)
            self.get_asset(asset_id)
            updated = permissions.set_override(user, asset_id, permission_id, value)
            self.users[user_id] = updated
            return updated

    # --- Project templates ---

    def save_project_template(self, template: ProjectTemplate) -> ProjectTemplate:
        with self._lock:
            stored = template.model_copy(deep=True)
            stored.last_updated = self.now()
            self.project_templates[stored.id] = stored
            logger.info("Saved project template %s", stored.id, extra={"template_id": stored.id})
            return stored

    def delete_project_template(self, template_id: str) -> None:
        with self._lock:
            self.get_template(template_id)
            del self.project_templates[template_id]
            logger.info("Deleted project template %s", template_id)

    def duplicate_project_template(self, template_id: str) -> ProjectTemplate:
        with self._lock:
            original = self.get_template(template_id)
            copy = original.model_copy(deep=True)
            copy.id = self._new_id("template")
            copy.name = f"{original.name} (Copy)"
            copy.last_updated = self.now()
            self.project_templates[copy.id] = copy
            logger.info("Duplicated template %s as %s", template_id, copy.id)
            return copy

    def reorder_template_tasks(self, template_id: str, task_ids: list[str]) -> ProjectTemplate:
        """Reorder tasks; ``task_ids`` must be a permutation of the current ids."""
        with self._lock:
            template = self.get_template(template_id)
            by_id = {t.id: t for t in template.tasks}
            if sorted(task_ids) != sorted(by_id):
                raise ValidationFailedError("task_ids", "Must list every task exactly once.")
            updated = template.model_copy(deep=True)
            updated.tasks = []
            for order, task_id in enumerate(task_ids):
                task = by_id[task_id].model_copy(deep=True)
                task.display_order = order
                updated.tasks.append(task)
            updated.last_updated = self.now()
            self.project_templates[template_id] = updated
            logger.info("Reordered tasks of template %s", template_id)
            return updated

    def save_recurring_task_template(
        self, template: RecurringTaskTemplate
    ) -> RecurringTaskTemplate:
        with self._lock:
            stored = template.model_copy(deep=True)
            self.recurring_task_templates[stored.id] = stored
            logger.info("Saved recurring task template %s", stored.id)
            return stored

    def save_recurring_project_template(
        self, template: RecurringProjectTemplate
    ) -> RecurringProjectTemplate:
        with self._lock:
            stored = template.model_copy(deep=True)
            self.recurring_project_templates[stored.id] = stored
            logger.info("Saved recurring project template %s", stored.id)
            return stored

    def delete_recurring_task_template(self, template_id: str) -> None:
        with self._lock:
            if self.recurring_task_templates.pop(template_id, None) is None:
                raise TemplateNotFoundError(template_id)
            logger.info("Deleted recurring task template %s", template_id)

    def delete_recurring_project_template(self, template_id: str) -> None:
        with self._lock:
            if self.recurring_project_templates.pop(template_id, None) is None:
                raise TemplateNotFoundError(template_id)
            logger.info("Deleted recurring project template %s", template_id)

    # --- Projects ---

    def launchable_templates(self, user_id: str, asset_id: str) -> list[ProjectTemplate]:
        """Templates the user may launch that apply to the asset."""
        user = self.users.get(user_id)
        asset = self.assets.get(asset_id)
        if user is None or asset is None:
            return []
        return [
            t
            for t in self.project_templates.values()
            if permissions.can_launch_template(user, t)
            and permissions.template_applies_to_asset(t, asset)
        ]

    def launch_project(
        self,
        user_id: str,
        template_id: str,
        primary_asset_id: str,
        project_name: str | None = None,
        placeholder_choices: Mapping[str, TaskAssignment] | None = None,
    ) -> ActiveProject:
        """Authorize, then launch. Nothing is stored unless every check passes."""
        with self._lock:
            template = self.get_template(template_id)
            asset = self.get_asset(primary_asset_id)
            user = self.get_user(user_id)

            if not permissions.can_launch_template(user, template):
                logger.warning(
                    "Launch of template %s denied",
                    template_id,
                    extra={"user_id": user_id, "template_id": template_id},
                )
                raise UnauthorizedError(f"User {user_id} may not launch template {template_id}")
            if not permissions.template_applies_to_asset(template, asset):
                raise ValidationFailedError(
                    "primary_asset_id", f"Template {template.name} does not apply to {asset.name}"
                )

            name = template.name if project_name is None else project_name.strip()
            if not name:
                raise ValidationFailedError("project_name", "Project name is required.")

            project = launch_project(
                template,
                primary_asset_id=asset.id,
                project_name=name,
                answers=placeholder_answers(template, placeholder_choices),
                launched_by=user.id,
                now=self.now(),
                project_id=self._new_id("proj"),
            )
            self.active_projects[project.id] = project
            return project

    def toggle_task(self, user_id: str, project_id: str, task_id: str) -> ActiveProject:
        with self._lock:
            actor = self.get_user(user_id)
            project = self.get_project(project_id)
            updated = toggle_project_task(project, task_id, actor, self.now())
            if updated is None:
                raise TaskNotFoundError(task_id)
            self.active_projects[project_id] = updated
            return updated

    def create_action_item(self, user_id: str, description: str, due_date: datetime) -> ActionItem:
        with self._lock:
            creator = self.get_user(user_id)
            if not description.strip():
                raise ValidationFailedError("description", "Description is required.")
            item = ActionItem(
                id=self._new_id("action"),
                description=description.strip(),
                source=creator.display_name,
                due_date=due_date,
            )
            self.action_items[item.id] = item
            logger.info("Created action item %s", item.id, extra={"user_id": user_id})
            return item

    def toggle_action_item(self, item_id: str) -> ActionItem:
        with self._lock:
            item = self.action_items.get(item_id)
            if item is None:
                raise ActionItemNotFoundError(item_id)
            updated = toggle_action_item(item, self.now())
            self.action_items[item_id] = updated
            return updated

    def task_view(
        self, user_id: str, filters: TaskFilters | None = None
    ) -> tuple[list[DisplayTask], TaskBuckets]:
        viewer = self.get_user(user_id)
        now = self.now()
        rows = unified_tasks(
            self.active_projects.values(), self.action_items.values(), viewer, self.assets
        )
        filtered = filter_tasks(rows, filters or TaskFilters(), viewer, now)
        return filtered, bucket_tasks(filtered, now)

    # --- University ---

    def save_course(self, course: UniversityCourse) -> UniversityCourse:
        with self._lock:
            stored = course.model_copy(deep=True)
            self.courses[stored.id] = stored
            logger.info("Saved course %s", stored.id)
            return stored

    def save_learning_path(self, path: LearningPath) -> LearningPath:
        with self._lock:
            stored = path.model_copy(deep=True)
            self.learning_paths[stored.id] = stored
            logger.info("Saved learning path %s", stored.id)
            return stored

    def enrollments_for(self, user_id: str) -> list[UserEnrollment]:
        return [e for e in self.enrollments if e.user_id == user_id]

    def certifications_for(self, user_id: str) -> list[UserCertification]:
        return [c for c in self.certifications if c.user_id == user_id]

    def on_course_completed(self, course_id: str, user_id: str) -> CourseCompletionResult:
        """Record completion and auto-complete matching Learning Module tasks."""
        with self._lock:
            course = self.get_course(course_id)
            user = self.get_user(user_id)

            enrollments, projects, result = complete_course(
                course,
                user,
                self.active_projects.values(),
                self.enrollments,
                self.now(),
                self._new_id,
                self._policy,
            )
            self.enrollments = enrollments
            if result.certification is not None:
                self.certifications = [*self.certifications, result.certification]
            self.active_projects = {p.id: p for p in projects}

            logger.info(
                "Course %s completed; %d project task(s) advanced",
                course.id,
                len(result.completed_tasks),
                extra={"user_id": user.id},
            )
            return result

    def check_certification_expirations(self, window_days: int = 30) -> ExpiryReport:
        with self._lock:
            report = check_expirations(
                self.certifications,
                self.enrollments,
                self.users,
                self.courses,
                self.now(),
                window_days,
                self._new_id,
            )
            if report.new_enrollments:
                self.enrollments = [*self.enrollments, *report.new_enrollments]
            return report
