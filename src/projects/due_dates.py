"""Relative → absolute due-date resolution.

Calendar arithmetic uses ``dateutil.relativedelta``: adding months keeps the
day of month and clamps to the last valid day when the target month is
shorter (2024-01-31 + 1 month → 2024-02-29).

Every reference point (Project Start, Project End, Previous Step Completion)
is resolved against the launch anchor. Project end and predecessor
completion dates are not known at launch time, so templates that use them
get start-anchored dates.
"""

from __future__ import annotations

from datetime import datetime

from dateutil.relativedelta import relativedelta

from src.core.models import DueDateDirection, DueDateUnit, IntervalUnit, RelativeDueDate

_DUE_DATE_UNITS: dict[DueDateUnit, str] = {
    DueDateUnit.DAYS: "days",
    DueDateUnit.WEEKS: "weeks",
    DueDateUnit.MONTHS: "months",
}

_INTERVAL_UNITS: dict[IntervalUnit, str] = {
    IntervalUnit.DAY: "days",
    IntervalUnit.WEEK: "weeks",
    IntervalUnit.MONTH: "months",
    IntervalUnit.YEAR: "years",
}


def resolve_due_date(anchor: datetime, spec: RelativeDueDate) -> datetime:
    """Resolve ``spec`` against ``anchor``: After adds, Before subtracts."""
    amount = spec.value if spec.direction == DueDateDirection.AFTER else -spec.value
    return anchor + relativedelta(**{_DUE_DATE_UNITS[spec.unit]: amount})


def add_interval(start: datetime, interval: int, unit: IntervalUnit) -> datetime:
    """Add ``interval`` calendar units (day/week/month/year) to ``start``.

    Feb 29 + 1 year clamps to Feb 28.
    """
    return start + relativedelta(**{_INTERVAL_UNITS[unit]: interval})
