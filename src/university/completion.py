"""Course completion and its cross-module effects.

Completing a course:
  1. upserts the user's enrollment to Completed / 100%,
  2. issues a certification when the course has a recertification rule,
  3. auto-completes matching Learning Module tasks in active projects.

Which tasks "belong" to the user is decided by an assignment policy.
``match_by_position`` matches a held position id against the task's role
ids regardless of asset, so a position id shared by two asset types can
complete tasks at assets the user does not work at.
``match_by_position_at_project_asset`` only counts the position held at
the project's primary asset.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.core.models import (
    ActiveProject,
    EnrollmentStatus,
    TaskStatus,
    TaskType,
    UniversityCourse,
    User,
    UserCertification,
    UserEnrollment,
)
from src.projects.due_dates import add_interval
from src.projects.task_state import mark_completed
from src.projects.task_views import is_assigned_to

logger = logging.getLogger(__name__)

AssignmentPolicy = Callable[[Any, User, ActiveProject], bool]


def match_by_position(task: Any, user: User, project: ActiveProject) -> bool:
    """Direct user match, or any held position id in the task's roles."""
    return is_assigned_to(task.assignment, user)


def match_by_position_at_project_asset(task: Any, user: User, project: ActiveProject) -> bool:
    """Direct user match, or the position held at the project's asset."""
    if user.id in task.assignment.user_ids:
        return True
    position_id = user.position_at(project.primary_asset_id)
    return position_id is not None and position_id in task.assignment.role_ids


ASSIGNMENT_POLICIES: dict[str, AssignmentPolicy] = {
    "position": match_by_position,
    "position_at_asset": match_by_position_at_project_asset,
}


@dataclass
class CourseCompletionResult:
    enrollment: UserEnrollment
    certification: UserCertification | None = None
    completed_tasks: list[tuple[str, str]] = field(default_factory=list)  # (project_id, task_id)


def upsert_enrollment(
    enrollments: list[UserEnrollment],
    user_id: str,
    course_id: str,
    now: datetime,
    new_id: str,
) -> tuple[list[UserEnrollment], UserEnrollment]:
    """Mark the user's enrollment Completed, creating it if missing.

    An open (re-)enrollment is preferred over an already completed one.
    """
    candidates = [
        i for i, e in enumerate(enrollments) if e.user_id == user_id and e.course_id == course_id
    ]
    open_ones = [i for i in candidates if enrollments[i].status != EnrollmentStatus.COMPLETED]
    target = (open_ones or candidates or [None])[0]

    result = list(enrollments)
    if target is not None:
        completed = enrollments[target].model_copy(
            update={
                "status": EnrollmentStatus.COMPLETED,
                "progress": 100,
                "completion_date": now,
            }
        )
        result[target] = completed
    else:
        completed = UserEnrollment(
            id=new_id,
            user_id=user_id,
            course_id=course_id,
            status=EnrollmentStatus.COMPLETED,
            progress=100,
            completion_date=now,
            created_at=now,
        )
        result.append(completed)
    return result, completed


def issue_certification(
    course: UniversityCourse, user_id: str, now: datetime, cert_id: str
) -> UserCertification | None:
    rule = course.recertification_rule
    if rule is None:
        return None
    return UserCertification(
        id=cert_id,
        user_id=user_id,
        course_id=course.id,
        issue_date=now,
        expiration_date=add_interval(now, rule.interval, rule.unit),
    )


def propagate_completion(
    projects: Iterable[ActiveProject],
    course_id: str,
    user: User,
    now: datetime,
    policy: AssignmentPolicy = match_by_position,
) -> tuple[list[ActiveProject], list[tuple[str, str]]]:
    """Complete open Learning Module tasks for the course assigned to the user.

    Projects without a matching task are returned as the same objects.
    """
    updated_projects: list[ActiveProject] = []
    touched: list[tuple[str, str]] = []

    for project in projects:
        matches = [
            task.id
            for task in project.tasks
            if task.type == TaskType.LEARNING_MODULE
            and course_id in task.lms_course_ids
            and task.status != TaskStatus.COMPLETED
            and policy(task, user, project)
        ]
        if not matches:
            updated_projects.append(project)
            continue

        copy = project.model_copy(deep=True)
        for task in copy.tasks:
            if task.id in matches:
                mark_completed(task, user, now)
                touched.append((project.id, task.id))
        updated_projects.append(copy)
        logger.info(
            "Course %s auto-completed %d task(s) in project %s",
            course_id,
            len(matches),
            project.id,
            extra={"project_id": project.id, "user_id": user.id},
        )

    return updated_projects, touched


def complete_course(
    course: UniversityCourse,
    user: User,
    projects: Iterable[ActiveProject],
    enrollments: list[UserEnrollment],
    now: datetime,
    id_factory: Callable[[str], str],
    policy: AssignmentPolicy = match_by_position,
) -> tuple[list[UserEnrollment], list[ActiveProject], CourseCompletionResult]:
    """Apply every effect of a course completion without mutating inputs.

    Returns the new enrollment list, the new project list and a summary.
    """
    enrollments, enrollment = upsert_enrollment(
        enrollments, user.id, course.id, now, id_factory("enroll")
    )
    certification = issue_certification(course, user.id, now, id_factory("cert"))
    updated, touched = propagate_completion(projects, course.id, user, now, policy)
    result = CourseCompletionResult(
        enrollment=enrollment, certification=certification, completed_tasks=touched
    )
    return enrollments, updated, result
