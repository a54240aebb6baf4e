"""Unit tests for the certification expiration check."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.core.models import (
    EnrollmentStatus,
    RecertificationRule,
    UniversityCourse,
    User,
    UserCertification,
    UserEnrollment,
)
from src.university.expirations import ExpiryAction, check_expirations, find_expiring


def _cert(cert_id: str, course_id: str, now: datetime, expires_in: int | None) -> UserCertification:
    return UserCertification(
        id=cert_id,
        user_id="user-crew",
        course_id=course_id,
        issue_date=now - timedelta(days=700),
        expiration_date=None if expires_in is None else now + timedelta(days=expires_in),
    )


@pytest.fixture
def courses() -> dict[str, UniversityCourse]:
    return {
        "LMS-301": UniversityCourse(
            id="LMS-301",
            title="Food Safety",
            recertification_rule=RecertificationRule(interval=2, unit="year"),
        ),
        "LMS-101": UniversityCourse(id="LMS-101", title="Welcome"),
    }


def _ids():
    counter = iter(range(1, 100))
    return lambda prefix: f"{prefix}-{next(counter)}"


class TestFindExpiring:
    def test_window(self, now: datetime) -> None:
        certs = [
            _cert("c-in", "LMS-301", now, 20),
            _cert("c-out", "LMS-301", now, 45),
            _cert("c-past", "LMS-301", now, -1),
            _cert("c-never", "LMS-301", now, None),
            _cert("c-edge", "LMS-301", now, 30),
        ]
        assert [c.id for c in find_expiring(certs, now, 30)] == ["c-in", "c-edge"]


class TestCheckExpirations:
    def test_enrolls_when_rule_exists(
        self, now: datetime, crew: User, courses: dict[str, UniversityCourse]
    ) -> None:
        cert = _cert("c1", "LMS-301", now, 10)
        report = check_expirations([cert], [], {crew.id: crew}, courses, now, 30, _ids())
        assert report.enrolled_count == 1
        notice = report.notices[0]
        assert notice.action == ExpiryAction.ENROLLED
        assert notice.user_email == "maria@example.com"
        assert notice.course_title == "Food Safety"
        enrollment = report.new_enrollments[0]
        assert enrollment.id == notice.enrollment_id == "enroll-1"
        assert enrollment.status == EnrollmentStatus.NOT_STARTED
        assert enrollment.created_at == now

    def test_existing_open_enrollment_not_duplicated(
        self, now: datetime, crew: User, courses: dict[str, UniversityCourse]
    ) -> None:
        cert = _cert("c1", "LMS-301", now, 10)
        open_one = UserEnrollment(
            id="e1", user_id=crew.id, course_id="LMS-301", created_at=now - timedelta(days=1)
        )
        report = check_expirations([cert], [open_one], {crew.id: crew}, courses, now, 30, _ids())
        assert report.new_enrollments == []
        assert report.notices[0].action == ExpiryAction.ALREADY_ENROLLED

    def test_enrollment_older_than_cert_ignored(
        self, now: datetime, crew: User, courses: dict[str, UniversityCourse]
    ) -> None:
        cert = _cert("c1", "LMS-301", now, 10)
        stale = UserEnrollment(
            id="e0", user_id=crew.id, course_id="LMS-301", created_at=now - timedelta(days=800)
        )
        report = check_expirations([cert], [stale], {crew.id: crew}, courses, now, 30, _ids())
        assert report.enrolled_count == 1

    def test_no_rule_and_unknown_course(
        self, now: datetime, crew: User, courses: dict[str, UniversityCourse]
    ) -> None:
        certs = [_cert("c1", "LMS-101", now, 5), _cert("c2", "LMS-999", now, 5)]
        report = check_expirations(certs, [], {crew.id: crew}, courses, now, 30, _ids())
        assert [n.action for n in report.notices] == [
            ExpiryAction.NO_RULE,
            ExpiryAction.UNKNOWN_COURSE,
        ]
        assert report.new_enrollments == []

    def test_inputs_not_mutated(
        self, now: datetime, crew: User, courses: dict[str, UniversityCourse]
    ) -> None:
        enrollments: list[UserEnrollment] = []
        certs = [_cert("c1", "LMS-301", now, 10)]
        check_expirations(certs, enrollments, {crew.id: crew}, courses, now, 30, _ids())
        assert enrollments == []
