"""GitHub and Discourse adapters (base and implementations)."""

from issue_migrator.adapters.base import ForumAdapter, ForumError, GitPlatformAdapter, GitPlatformError
from issue_migrator.adapters.discourse import DiscourseAdapter
from issue_migrator.adapters.github import GitHubAdapter

__all__ = [
    "DiscourseAdapter",
    "ForumAdapter",
    "ForumError",
    "GitHubAdapter",
    "GitPlatformAdapter",
    "GitPlatformError",
]
