"""Domain models for the workforce operations core.

Every entity is a pydantic model so the same types validate API payloads
and carry in-memory state. Task kinds are discriminated unions on ``type``;
an active task is its template kind plus completion-tracking fields.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


# Every stored timestamp is timezone-aware so it compares against the UTC clock.
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]

# --- Enumerations ---


class AssetStatus(enum.StrEnum):
    ACTIVE = "Active"
    UNDER_CONSTRUCTION = "Under Construction"
    INACTIVE = "Inactive"


class TaskType(enum.StrEnum):
    """The six kinds of template task."""

    TASK = "Task"
    RECURRING_TASK = "Recurring Task"
    SUB_PROJECT = "Sub-Project"
    LEARNING_MODULE = "Learning Module"
    FILE_REQUIREMENT = "File Requirement"
    DISCUSSION = "Discussion"


class DueDateRef(enum.StrEnum):
    PROJECT_START = "Project Start"
    PROJECT_END = "Project End"
    PREVIOUS_STEP_COMPLETION = "Previous Step Completion"


class DueDateDirection(enum.StrEnum):
    BEFORE = "Before"
    AFTER = "After"


class DueDateUnit(enum.StrEnum):
    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"


class RecurrenceFreq(enum.StrEnum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"


class AssetAssignmentRuleType(enum.StrEnum):
    PRIMARY_ONLY = "primary_only"
    PRIMARY_DISTRICT = "primary_district"
    MANUAL_LIST = "manual_list"


class TaskSourceType(enum.StrEnum):
    PROJECT = "project"
    RECURRING_TASK = "recurring_task"
    STANDALONE = "standalone"


class TaskStatus(enum.StrEnum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"


class ProjectStatus(enum.StrEnum):
    ON_TRACK = "On Track"
    AT_RISK = "At Risk"
    OFF_TRACK = "Off Track"


class EnrollmentStatus(enum.StrEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class IntervalUnit(enum.StrEnum):
    """Calendar units used by recertification rules."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class RecertificationMethod(enum.StrEnum):
    REFRESHER_EXAM = "refresher_exam"
    FULL_COURSE = "full_course"


class ScheduleStatus(enum.StrEnum):
    ACTIVE = "Active"
    PAUSED = "Paused"


# --- Access control ---


class GranularPermission(BaseModel):
    """A specific action a user can take on a page."""

    id: str
    description: str = ""


class ConfigurablePage(BaseModel):
    id: str
    name: str
    icon: str = ""
    permissions: list[GranularPermission] = Field(default_factory=list)


class Position(BaseModel):
    """A job title; exists only within one asset type."""

    id: str
    title: str


class AssetTypeConfig(BaseModel):
    """Blueprint for a category of assets.

    ``permission_matrix`` maps position id → (permission id | page id) → bool.
    """

    id: str
    name: str
    positions: list[Position] = Field(default_factory=list)
    pages: list[ConfigurablePage] = Field(default_factory=list)
    permission_matrix: dict[str, dict[str, bool]] = Field(default_factory=dict)

    def position(self, position_id: str) -> Position | None:
        return next((p for p in self.positions if p.id == position_id), None)

    def page(self, page_id: str) -> ConfigurablePage | None:
        return next((p for p in self.pages if p.id == page_id), None)

    def permission_ids(self) -> list[str]:
        return [perm.id for page in self.pages for perm in page.permissions]


class Address(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


class Asset(BaseModel):
    id: str
    name: str
    location: Address = Field(default_factory=Address)
    asset_type_id: str
    status: AssetStatus = AssetStatus.ACTIVE


class Assignment(BaseModel):
    """Binds a position to an asset. Names are denormalized display caches."""

    id: str
    asset_id: str
    asset_name: str = ""
    position_id: str
    position_title: str = ""


class UserPermissionOverride(BaseModel):
    """Explicit grant (True) or deny (False) of one permission at one asset."""

    asset_id: str
    permission_id: str
    has_permission: bool


class User(BaseModel):
    id: str
    first_name: str
    last_name: str
    username: str
    email: str
    password_hash: str | None = Field(default=None, exclude=True)
    is_active: bool = True
    assignments: list[Assignment] = Field(default_factory=list)
    global_permissions: list[str] = Field(default_factory=list)
    overrides: list[UserPermissionOverride] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def position_ids(self) -> list[str]:
        return [a.position_id for a in self.assignments]

    def position_at(self, asset_id: str) -> str | None:
        """Position id held at the given asset, if any."""
        for assignment in self.assignments:
            if assignment.asset_id == asset_id:
                return assignment.position_id
        return None

    def override_for(self, asset_id: str, permission_id: str) -> UserPermissionOverride | None:
        for override in self.overrides:
            if override.asset_id == asset_id and override.permission_id == permission_id:
                return override
        return None


# --- Templates ---


class TaskAssignment(BaseModel):
    role_ids: list[str] = Field(default_factory=list)
    user_ids: list[str] = Field(default_factory=list)
    placeholder_ids: list[str] = Field(default_factory=list)

    @property
    def is_unassigned(self) -> bool:
        return not (self.role_ids or self.user_ids or self.placeholder_ids)


class RelativeDueDate(BaseModel):
    value: int = Field(default=0, ge=0)
    unit: DueDateUnit = DueDateUnit.DAYS
    direction: DueDateDirection = DueDateDirection.AFTER
    ref: DueDateRef = DueDateRef.PROJECT_START


Weekday = Literal["M", "T", "W", "Th", "F", "Sa", "Su"]


class RecurrenceRule(BaseModel):
    freq: RecurrenceFreq
    days_of_week: list[Weekday] | None = None  # weekly
    day_of_month: int | None = Field(default=None, ge=1, le=31)  # monthly
    month_of_year: int | None = Field(default=None, ge=1, le=12)  # annually
    day_of_week: int | None = None  # e.g. 2nd Tuesday
    week_of_month: int | None = None
    time: str = "09:00"


class BaseTask(BaseModel):
    id: str
    title: str
    display_order: int = 0
    assignment: TaskAssignment = Field(default_factory=TaskAssignment)
    due_date: RelativeDueDate = Field(default_factory=RelativeDueDate)
    attachment_count: int | None = None
    comment_count: int | None = None
    sop_link: str | None = None


class StandardTask(BaseTask):
    type: Literal["Task"] = "Task"
    description: str = ""
    dependencies: list[str] = Field(default_factory=list)


class RecurringTask(BaseTask):
    type: Literal["Recurring Task"] = "Recurring Task"
    description: str = ""
    recurrence: RecurrenceRule


class SubProjectTask(BaseTask):
    type: Literal["Sub-Project"] = "Sub-Project"
    sub_project_template_id: str
    trigger: Literal["Manual", "Automatic"] = "Manual"


class LearningModuleTask(BaseTask):
    type: Literal["Learning Module"] = "Learning Module"
    lms_course_ids: list[str] = Field(default_factory=list)
    requirement: Literal["Required", "Recommended"] = "Required"


class FileRequirementTask(BaseTask):
    type: Literal["File Requirement"] = "File Requirement"
    description: str = ""
    requires_approval: bool = False


class DiscussionTask(BaseTask):
    type: Literal["Discussion"] = "Discussion"
    prompt: str = ""


TemplateTask = Annotated[
    StandardTask
    | RecurringTask
    | SubProjectTask
    | LearningModuleTask
    | FileRequirementTask
    | DiscussionTask,
    Field(discriminator="type"),
]


class DefinedPlaceholder(BaseModel):
    """A named role slot filled in at launch time."""

    id: str
    name: str
    description: str = ""
    default_assignment: TaskAssignment = Field(default_factory=TaskAssignment)


class AssetAssignmentRule(BaseModel):
    type: AssetAssignmentRuleType = AssetAssignmentRuleType.PRIMARY_ONLY
    asset_ids: list[str] = Field(default_factory=list)


class AccessPermissions(BaseModel):
    """Who may launch a template."""

    user_ids: list[str] = Field(default_factory=list)
    position_ids: list[str] = Field(default_factory=list)


class ProjectTemplate(BaseModel):
    id: str
    name: str
    description: str = ""
    applies_to_asset_type_ids: list[str] = Field(default_factory=list)
    applies_to_asset_ids: list[str] = Field(default_factory=list)
    defined_placeholders: list[DefinedPlaceholder] = Field(default_factory=list)
    tasks: list[TemplateTask] = Field(default_factory=list)
    last_updated: UtcDatetime | None = None
    asset_assignment_rule: AssetAssignmentRule = Field(default_factory=AssetAssignmentRule)
    access_permissions: AccessPermissions = Field(default_factory=AccessPermissions)


class RecurringTaskTemplate(BaseModel):
    """Rule for a recurring standalone task. Nothing materializes it automatically."""

    id: str
    title: str
    description: str | None = None
    recurrence_rule: RecurrenceRule
    applies_to_asset_id: str
    assignment: TaskAssignment = Field(default_factory=TaskAssignment)
    status: ScheduleStatus = ScheduleStatus.ACTIVE


class RecurringProjectTemplate(BaseModel):
    """Rule for a recurring project series. Rules only, no scheduler."""

    id: str
    series_name: str
    base_project_template_id: str
    recurrence_rule: RecurrenceRule
    default_lead: TaskAssignment = Field(default_factory=TaskAssignment)
    status: ScheduleStatus = ScheduleStatus.ACTIVE


# --- Active projects ---


class ActiveTaskState(BaseModel):
    """Completion-tracking fields layered over a template task."""

    source_type: TaskSourceType = TaskSourceType.PROJECT
    status: TaskStatus = TaskStatus.PENDING
    completed_at: UtcDatetime | None = None
    completed_by: str | None = None  # display name of the completing user
    absolute_due_date: UtcDatetime


class ActiveStandardTask(StandardTask, ActiveTaskState):
    pass


class ActiveRecurringTask(RecurringTask, ActiveTaskState):
    pass


class ActiveSubProjectTask(SubProjectTask, ActiveTaskState):
    pass


class ActiveLearningModuleTask(LearningModuleTask, ActiveTaskState):
    pass


class ActiveFileRequirementTask(FileRequirementTask, ActiveTaskState):
    pass


class ActiveDiscussionTask(DiscussionTask, ActiveTaskState):
    pass


ActiveTask = Annotated[
    ActiveStandardTask
    | ActiveRecurringTask
    | ActiveSubProjectTask
    | ActiveLearningModuleTask
    | ActiveFileRequirementTask
    | ActiveDiscussionTask,
    Field(discriminator="type"),
]

# Template kind → active kind; must stay exhaustive over TaskType.
ACTIVE_TASK_CLASSES: dict[str, type[BaseModel]] = {
    TaskType.TASK: ActiveStandardTask,
    TaskType.RECURRING_TASK: ActiveRecurringTask,
    TaskType.SUB_PROJECT: ActiveSubProjectTask,
    TaskType.LEARNING_MODULE: ActiveLearningModuleTask,
    TaskType.FILE_REQUIREMENT: ActiveFileRequirementTask,
    TaskType.DISCUSSION: ActiveDiscussionTask,
}


class ActiveProject(BaseModel):
    id: str
    name: str
    template_id: str
    primary_asset_id: str
    status: ProjectStatus = ProjectStatus.ON_TRACK
    launched_at: UtcDatetime
    launched_by: str  # user id
    tasks: list[ActiveTask] = Field(default_factory=list)

    def task(self, task_id: str) -> Any | None:
        return next((t for t in self.tasks if t.id == task_id), None)


class ActionItem(BaseModel):
    """A standalone (non-project) task."""

    id: str
    description: str
    source: str = ""
    due_date: UtcDatetime
    status: TaskStatus = TaskStatus.PENDING
    completed_at: UtcDatetime | None = None
    source_type: Literal["standalone", "recurring_task"] = "standalone"
    attachment_count: int = 0
    comment_count: int = 0
    sop_link: str | None = None


# --- University ---


class RecertificationRule(BaseModel):
    interval: int = Field(ge=1)
    unit: IntervalUnit
    method: RecertificationMethod = RecertificationMethod.REFRESHER_EXAM


class CourseModule(BaseModel):
    id: str
    title: str
    module_type: Literal["Video", "Document", "Quiz", "Simulation", "LiveSession", "PeerReview"]
    order: int = 0
    content: dict[str, Any] = Field(default_factory=dict)


class UniversityCourse(BaseModel):
    id: str
    title: str
    description: str = ""
    asset_type_relevance: list[str] = Field(default_factory=list)
    recertification_rule: RecertificationRule | None = None
    modules: list[CourseModule] = Field(default_factory=list)


class UserEnrollment(BaseModel):
    id: str
    user_id: str
    course_id: str
    status: EnrollmentStatus = EnrollmentStatus.NOT_STARTED
    completion_date: UtcDatetime | None = None
    score: float | None = None
    progress: int = Field(default=0, ge=0, le=100)
    created_at: UtcDatetime | None = None


class UserCertification(BaseModel):
    id: str
    user_id: str
    course_id: str
    issue_date: UtcDatetime
    expiration_date: UtcDatetime | None = None


class CourseRequirement(BaseModel):
    type: Literal["course"] = "course"
    course_id: str


class ProjectRequirement(BaseModel):
    type: Literal["project"] = "project"
    project_template_id: str


class ManualSignOffRequirement(BaseModel):
    type: Literal["manual_sign_off"] = "manual_sign_off"
    description: str


PathRequirement = Annotated[
    CourseRequirement | ProjectRequirement | ManualSignOffRequirement,
    Field(discriminator="type"),
]


class LearningPathStage(BaseModel):
    id: str
    title: str
    order: int = 0
    requirements: list[PathRequirement] = Field(default_factory=list)


class UnlockPrerequisites(BaseModel):
    required_path_ids: list[str] = Field(default_factory=list)
    required_certification_ids: list[str] = Field(default_factory=list)


class LearningPath(BaseModel):
    id: str
    title: str
    description: str = ""
    unlock_prerequisites: UnlockPrerequisites | None = None
    stages: list[LearningPathStage] = Field(default_factory=list)
