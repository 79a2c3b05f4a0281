"""Tests for resuming an interrupted live run from the checkpoint log."""

import logging
from pathlib import Path
from typing import List
from unittest.mock import patch

import pytest
from conftest import NOW, FakeForum, FakeGitHub, make_issue

from issue_migrator.adapters.base import GitPlatformError
from issue_migrator.config import DiscourseConfig, MigrationConfig
from issue_migrator.migration.errors import CheckpointError, RunHaltedError
from issue_migrator.migration.resume import ResumeController
from issue_migrator.migration.run_modes import DryRun, LiveRun

TOPIC = "https://discuss.example/t/42"


def _url(n: int) -> str:
    return f"https://github.com/owner/repo/issues/{n}"


def _write_log(migration: MigrationConfig, *lines: str) -> None:
    Path(migration.checkpoint_log).write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


@pytest.fixture
def live(github: FakeGitHub, forum: FakeForum, migration: MigrationConfig, discourse: DiscourseConfig) -> LiveRun:
    return LiveRun(github, forum, migration, discourse, now=lambda: NOW)


def test_resume_from_comment_done_closes_and_locks(
    live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig
) -> None:
    """Log at COMMENT_DONE, issue still open: close then lock, no second comment."""
    _write_log(migration, f"{_url(1)} 1 {TOPIC}", f"{_url(1)} 2 ")
    github.issues[1] = make_issue(1)

    stats = ResumeController(github, migration).run(live)

    assert calls == [("get_issue", "owner/repo", 1), ("close", "owner/repo", 1), ("lock", "owner/repo", 1)]
    assert stats.processed == 1
    lines = Path(migration.checkpoint_log).read_text(encoding="utf-8").splitlines()
    assert lines[-2:] == [f"{_url(1)} 3 ", f"{_url(1)} 4 "]


def test_resume_from_discourse_done_comments_with_restored_topic(
    live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig
) -> None:
    """Log at DISCOURSE_DONE: no new topic, comment links the logged one."""
    _write_log(migration, f"{_url(2)} 1 {TOPIC}")
    github.issues[2] = make_issue(2)

    ResumeController(github, migration).run(live)

    assert not [c for c in calls if c[0] == "topic"]
    comment = [c for c in calls if c[0] == "comment"][0]
    assert comment[3] == f"Hi octocat! Track it at: {TOPIC}"


def test_locked_issues_are_not_fetched(live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig) -> None:
    """Issues at LOCK_DONE need no external call at all."""
    _write_log(migration, f"{_url(3)} 2 ", f"{_url(3)} 4 ", f"{_url(3)} 3 ")
    github.issues[3] = make_issue(3)

    stats = ResumeController(github, migration).run(live)

    assert calls == []
    assert stats.processed == 0


def test_fetch_error_skips_issue(
    live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig, caplog: pytest.LogCaptureFixture
) -> None:
    """A deleted issue is logged and skipped; the next one still resumes."""
    _write_log(migration, f"{_url(4)} 2 ", f"{_url(5)} 3 ")
    github.issues[5] = make_issue(5)

    with caplog.at_level(logging.WARNING, logger="issue_migrator.migration.resume"):
        stats = ResumeController(github, migration).run(live)

    assert "error getting issue" in caplog.text
    assert calls[-1] == ("lock", "owner/repo", 5)
    assert stats.processed == 1


def test_malformed_lines_do_not_abort(live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig) -> None:
    """Garbage in the log is skipped, the valid lines still resume."""
    _write_log(migration, "garbage", f"{_url(6)} nope ", f"{_url(6)} 3 ")
    github.issues[6] = make_issue(6)

    ResumeController(github, migration).run(live)

    assert [c[0] for c in calls] == ["get_issue", "lock"]


def test_max_count_caps_restored_issues(github: FakeGitHub, migration: MigrationConfig) -> None:
    """Only the first max_count unfinished issues are resumed."""
    migration.max_count = 1
    _write_log(migration, f"{_url(7)} 2 ", f"{_url(8)} 2 ")
    restored = ResumeController(github, migration).restored()
    assert [r.number for r in restored] == [7]


def test_missing_log_raises(github: FakeGitHub, migration: MigrationConfig, live: LiveRun) -> None:
    """Resume without a checkpoint log is an error."""
    with pytest.raises(CheckpointError):
        ResumeController(github, migration).run(live)


def test_halt_carries_aggregate_stats(
    live: LiveRun, github: FakeGitHub, migration: MigrationConfig
) -> None:
    """A failure in the second target re-raises with the first one's stats."""
    _write_log(migration, f"{_url(1)} 3 ", f"{_url(2)} 2 ")
    github.issues[1] = make_issue(1)
    github.issues[2] = make_issue(2)

    original_close = github.close_issue

    def close(repo: str, number: int) -> None:
        if number == 2:
            raise GitPlatformError("500")
        original_close(repo, number)

    github.close_issue = close
    with pytest.raises(RunHaltedError) as exc_info:
        ResumeController(github, migration).run(live)
    assert exc_info.value.stats.processed == 1


def test_dry_resume_makes_only_fetches(github: FakeGitHub, calls: List[tuple], migration: MigrationConfig) -> None:
    """Dry mode re-fetches issues but changes nothing."""
    _write_log(migration, f"{_url(1)} 2 ")
    github.issues[1] = make_issue(1)

    with patch("issue_migrator.migration.run_modes.time.sleep") as sleep:
        ResumeController(github, migration).run(DryRun(migration, now=lambda: NOW))

    assert calls == [("get_issue", "owner/repo", 1)]
    sleep.assert_not_called()
    assert Path(migration.checkpoint_log).read_text(encoding="utf-8") == f"{_url(1)} 2 \n"


def test_already_closed_upstream_is_only_locked(
    live: LiveRun, github: FakeGitHub, calls: List[tuple], migration: MigrationConfig
) -> None:
    """State drift: the issue was closed meanwhile, so only lock is called."""
    _write_log(migration, f"{_url(1)} 2 ")
    github.issues[1] = make_issue(1, state="closed")

    ResumeController(github, migration).run(live)

    assert [c[0] for c in calls] == ["get_issue", "lock"]
