"""Tests for the pull request / stale classifier."""

from datetime import UTC, datetime, timedelta

from conftest import NOW, make_issue

from issue_migrator.migration.classifier import is_pull_request, is_stale, months_before


def test_is_pull_request_passthrough() -> None:
    """is_pull_request returns the issue's flag."""
    assert is_pull_request(make_issue(is_pull_request=True)) is True
    assert is_pull_request(make_issue()) is False


def test_months_before_plain() -> None:
    """Three calendar months back, same time of day."""
    assert months_before(NOW, 3) == datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def test_months_before_crosses_year_and_clamps_day() -> None:
    """Year boundary and short months are handled."""
    assert months_before(datetime(2024, 2, 10, tzinfo=UTC), 3) == datetime(2023, 11, 10, tzinfo=UTC)
    assert months_before(datetime(2024, 5, 31, tzinfo=UTC), 3) == datetime(2024, 2, 29, tzinfo=UTC)


def test_recent_issue_is_active() -> None:
    """Updated a day ago: not stale."""
    assert is_stale(make_issue(days_ago=1), NOW) is False


def test_four_months_old_issue_is_stale() -> None:
    """Updated ~4 months ago: stale."""
    assert is_stale(make_issue(days_ago=122), NOW) is True


def test_boundary_is_not_stale() -> None:
    """Updated exactly three months ago is not older than the window."""
    issue = make_issue(updated_at=months_before(NOW, 3))
    assert is_stale(issue, NOW) is False
    issue = make_issue(updated_at=months_before(NOW, 3) - timedelta(seconds=1))
    assert is_stale(issue, NOW) is True


def test_naive_datetimes_are_utc() -> None:
    """Naive timestamps compare as UTC."""
    issue = make_issue(updated_at=datetime(2020, 1, 1))
    assert is_stale(issue, datetime(2024, 1, 1)) is True


def test_custom_window() -> None:
    """A one-month window makes a 40-day-old issue stale."""
    assert is_stale(make_issue(days_ago=40), NOW, months=1) is True
    assert is_stale(make_issue(days_ago=40), NOW, months=3) is False
