"""Abstract bases for the GitHub and Discourse adapters."""

from abc import ABC, abstractmethod
from typing import List

from issue_migrator.models import Issue, RepoRef


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails."""

    pass


class ForumError(Exception):
    """Raised when a forum (Discourse) API call fails."""

    pass


class GitPlatformAdapter(ABC):
    """Issue source and sink: everything the migration does on GitHub."""

    @abstractmethod
    def list_open_issues(self, repo: str) -> List[Issue]:
        """List open issues of owner/name, pull requests included (flagged)."""
        ...

    @abstractmethod
    def get_issue(self, repo: str, issue_number: int) -> Issue:
        """Fetch issue by number."""
        ...

    @abstractmethod
    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post a comment on an issue."""
        ...

    @abstractmethod
    def close_issue(self, repo: str, issue_number: int) -> None:
        """Close an issue."""
        ...

    @abstractmethod
    def lock_issue(self, repo: str, issue_number: int) -> None:
        """Lock an issue's conversation."""
        ...

    def list_owned_repositories(self) -> List[RepoRef]:
        """List repositories owned by the authenticated account. Override if needed."""
        return []


class ForumAdapter(ABC):
    """Forum where migrated issues continue as topics."""

    @abstractmethod
    def create_topic(self, title: str, body: str, category_id: int) -> str:
        """Create a topic and return its public URL."""
        ...
