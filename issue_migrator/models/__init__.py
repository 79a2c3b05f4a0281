"""Data models for issues, repositories and run statistics (Pydantic)."""

from issue_migrator.models.issue import Issue
from issue_migrator.models.repo import RepoRef
from issue_migrator.models.stats import RunStats

__all__ = ["Issue", "RepoRef", "RunStats"]
