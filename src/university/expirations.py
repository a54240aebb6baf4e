"""Certification expiration check.

Meant to run daily: finds certifications expiring inside a window and,
for courses with a recertification rule, opens a fresh ``Not Started``
enrollment unless the user already has one open since the certification
was issued.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from src.core.models import (
    EnrollmentStatus,
    UniversityCourse,
    User,
    UserCertification,
    UserEnrollment,
)

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (EnrollmentStatus.NOT_STARTED, EnrollmentStatus.IN_PROGRESS)


class ExpiryAction(enum.StrEnum):
    ENROLLED = "enrolled"
    ALREADY_ENROLLED = "already_enrolled"
    NO_RULE = "no_rule"
    UNKNOWN_COURSE = "unknown_course"


@dataclass(frozen=True)
class ExpiryNotice:
    certification: UserCertification
    action: ExpiryAction
    user_email: str | None = None
    course_title: str | None = None
    enrollment_id: str | None = None


@dataclass
class ExpiryReport:
    notices: list[ExpiryNotice] = field(default_factory=list)
    new_enrollments: list[UserEnrollment] = field(default_factory=list)

    @property
    def enrolled_count(self) -> int:
        return sum(1 for n in self.notices if n.action == ExpiryAction.ENROLLED)


def find_expiring(
    certifications: Iterable[UserCertification], now: datetime, window_days: int
) -> list[UserCertification]:
    """Certifications whose expiration falls within [now, now + window]."""
    horizon = now + timedelta(days=window_days)
    return [
        c
        for c in certifications
        if c.expiration_date is not None and now <= c.expiration_date <= horizon
    ]


def _has_open_reenrollment(
    enrollments: Iterable[UserEnrollment], cert: UserCertification
) -> bool:
    for e in enrollments:
        if e.user_id != cert.user_id or e.course_id != cert.course_id:
            continue
        if e.status not in _OPEN_STATUSES:
            continue
        if e.created_at is None or e.created_at > cert.issue_date:
            return True
    return False


def check_expirations(
    certifications: Iterable[UserCertification],
    enrollments: Iterable[UserEnrollment],
    users: Mapping[str, User],
    courses: Mapping[str, UniversityCourse],
    now: datetime,
    window_days: int,
    id_factory: Callable[[str], str],
) -> ExpiryReport:
    """Plan recertification enrollments. Does not mutate its inputs."""
    report = ExpiryReport()
    known = list(enrollments)
    expiring = find_expiring(certifications, now, window_days)
    logger.info("Found %d certification(s) expiring within %d day(s)", len(expiring), window_days)

    for cert in expiring:
        user = users.get(cert.user_id)
        email = user.email if user else None
        course = courses.get(cert.course_id)
        if course is None:
            report.notices.append(ExpiryNotice(cert, ExpiryAction.UNKNOWN_COURSE, email))
            continue
        if course.recertification_rule is None:
            report.notices.append(ExpiryNotice(cert, ExpiryAction.NO_RULE, email, course.title))
            continue
        if _has_open_reenrollment(known, cert):
            report.notices.append(
                ExpiryNotice(cert, ExpiryAction.ALREADY_ENROLLED, email, course.title)
            )
            continue

        enrollment = UserEnrollment(
            id=id_factory("enroll"),
            user_id=cert.user_id,
            course_id=cert.course_id,
            status=EnrollmentStatus.NOT_STARTED,
            progress=0,
            created_at=now,
        )
        known.append(enrollment)
        report.new_enrollments.append(enrollment)
        report.notices.append(
            ExpiryNotice(cert, ExpiryAction.ENROLLED, email, course.title, enrollment.id)
        )
        logger.info(
            "Opened recertification enrollment %s for course %s",
            enrollment.id,
            course.id,
            extra={"user_id": cert.user_id},
        )

    return report
