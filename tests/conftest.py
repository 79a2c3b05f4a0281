"""Shared fakes for the GitHub and Discourse collaborators."""

from datetime import UTC, datetime, timedelta
from typing import Dict, List

import pytest

from issue_migrator.adapters.base import ForumAdapter, ForumError, GitPlatformAdapter, GitPlatformError
from issue_migrator.config import DiscourseConfig, MigrationConfig
from issue_migrator.models import Issue

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def make_issue(number: int = 1, days_ago: int = 1, **overrides) -> Issue:
    """Open issue of owner/repo updated ``days_ago`` days before NOW."""
    data = {
        "number": number,
        "owner": "owner",
        "repo": "repo",
        "title": f"Issue {number}",
        "body": "Something is broken",
        "author": "octocat",
        "html_url": f"https://github.com/owner/repo/issues/{number}",
        "updated_at": NOW - timedelta(days=days_ago),
    }
    data.update(overrides)
    return Issue(**data)


class FakeGitHub(GitPlatformAdapter):
    """Records calls; ``fail`` maps a method name to the error it raises."""

    def __init__(self, calls: List[tuple]) -> None:
        self.calls = calls
        self.fail: Dict[str, Exception] = {}
        self.issues: Dict[int, Issue] = {}

    def _call(self, name: str, *args) -> None:
        if name in self.fail:
            raise self.fail[name]
        self.calls.append((name, *args))

    def list_open_issues(self, repo: str) -> List[Issue]:
        self._call("list_open_issues", repo)
        return list(self.issues.values())

    def get_issue(self, repo: str, issue_number: int) -> Issue:
        self._call("get_issue", repo, issue_number)
        if issue_number not in self.issues:
            raise GitPlatformError(f"Not found: issue {repo}#{issue_number}")
        return self.issues[issue_number]

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self._call("comment", repo, issue_number, body)

    def close_issue(self, repo: str, issue_number: int) -> None:
        self._call("close", repo, issue_number)

    def lock_issue(self, repo: str, issue_number: int) -> None:
        self._call("lock", repo, issue_number)


class FakeForum(ForumAdapter):
    """Returns https://discuss.example/t/<n> for the n-th topic."""

    def __init__(self, calls: List[tuple]) -> None:
        self.calls = calls
        self.error: ForumError | None = None
        self.next_id = 42

    def create_topic(self, title: str, body: str, category_id: int) -> str:
        if self.error is not None:
            raise self.error
        self.calls.append(("topic", title, body, category_id))
        url = f"https://discuss.example/t/{self.next_id}"
        self.next_id += 1
        return url


@pytest.fixture
def calls() -> List[tuple]:
    return []


@pytest.fixture
def github(calls: List[tuple]) -> FakeGitHub:
    return FakeGitHub(calls)


@pytest.fixture
def forum(calls: List[tuple]) -> FakeForum:
    return FakeForum(calls)


@pytest.fixture
def migration(tmp_path) -> MigrationConfig:
    return MigrationConfig(
        checkpoint_log=tmp_path / "data.txt",
        delay_seconds=0,
        active_comment="Hi {author}! Track it at: {topic_url}",
        stale_comment="Hi {author}! Closing stale issue.",
    )


@pytest.fixture
def discourse() -> DiscourseConfig:
    return DiscourseConfig(category_id=11, category_url="https://discuss.example/c/issues")


@pytest.fixture(autouse=True)
def clean_env_snapshot(monkeypatch: pytest.MonkeyPatch) -> None:
    """Each test starts without the environment captured by an earlier load_config."""
    monkeypatch.setattr("issue_migrator.config._current_env", {})
