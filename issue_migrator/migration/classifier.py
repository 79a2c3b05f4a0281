"""Issue classification: pull request and stale checks."""

import calendar
from datetime import UTC, datetime

from issue_migrator.models import Issue

STALE_MONTHS = 3


def is_pull_request(issue: Issue) -> bool:
    return issue.is_pull_request


def months_before(now: datetime, months: int) -> datetime:
    """Same wall-clock time ``months`` calendar months earlier.

    The day is clamped to the length of the target month (May 31 -> Feb 28).
    """
    index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def is_stale(issue: Issue, now: datetime, months: int = STALE_MONTHS) -> bool:
    """True when the issue has not been updated within the last ``months`` months."""
    return _aware(issue.updated_at) < months_before(_aware(now), months)
