"""Domain error taxonomy.

Every failure in the core is local and recoverable by the caller.
The HTTP layer maps each family to a status code (see ``src/api/errors.py``).
"""

from __future__ import annotations


class WorkforceError(Exception):
    """Base class for all domain errors."""


# --- Not found ---


class NotFoundError(WorkforceError):
    """A referenced entity does not exist."""

    entity = "entity"

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class AssetNotFoundError(NotFoundError):
    entity = "asset"


class AssetTypeNotFoundError(NotFoundError):
    entity = "asset type"


class TemplateNotFoundError(NotFoundError):
    entity = "project template"


class ProjectNotFoundError(NotFoundError):
    entity = "project"


class TaskNotFoundError(NotFoundError):
    entity = "task"


class UserNotFoundError(NotFoundError):
    entity = "user"


class CourseNotFoundError(NotFoundError):
    entity = "course"


class ActionItemNotFoundError(NotFoundError):
    entity = "action item"


# --- Authorization / conflicts ---


class UnauthorizedError(WorkforceError):
    """The acting user may not perform the requested action."""


class ConflictError(WorkforceError):
    """The mutation conflicts with existing state."""


class AssetTypeInUseError(ConflictError):
    """An asset type config cannot be deleted while assets reference it."""

    def __init__(self, config_id: str, asset_ids: list[str]) -> None:
        self.config_id = config_id
        self.asset_ids = asset_ids
        super().__init__(
            f"Cannot delete asset type {config_id}: "
            f"used by {len(asset_ids)} asset(s) ({', '.join(asset_ids)})"
        )


class PositionInUseError(ConflictError):
    """A change would leave user assignments pointing at a missing position."""

    def __init__(self, position_ids: list[str], user_ids: list[str]) -> None:
        self.position_ids = position_ids
        self.user_ids = user_ids
        super().__init__(
            f"Position(s) {', '.join(position_ids)} still held by "
            f"{len(user_ids)} user(s) ({', '.join(user_ids)})"
        )


# --- User-facing ---


class AuthenticationError(WorkforceError):
    """Credentials did not match (login or password change)."""


class ValidationFailedError(WorkforceError):
    """User input failed a business validation rule."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")
