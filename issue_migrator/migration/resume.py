"""
Resume an interrupted live run from the checkpoint log.

Each issue found in the log is re-fetched from GitHub (it may have been
closed or deleted meanwhile) and handed to the run mode as a resume target,
which continues right after the last checkpointed step.
"""

import logging
from pathlib import Path
from typing import Iterator, List

from issue_migrator.adapters.base import GitPlatformAdapter, GitPlatformError
from issue_migrator.config import MigrationConfig
from issue_migrator.migration.checkpoint import RestoredIssue, Step, load_restored
from issue_migrator.migration.errors import RunHaltedError
from issue_migrator.migration.run_modes import ResumeTarget, RunMode
from issue_migrator.models import RunStats

LOG = logging.getLogger("issue_migrator.migration.resume")


class ResumeController:
    """Rebuilds in-flight issues from the log and re-enters the run mode."""

    def __init__(self, github: GitPlatformAdapter, migration: MigrationConfig) -> None:
        self._github = github
        self._migration = migration

    @property
    def checkpoint_path(self) -> Path:
        return self._migration.checkpoint_log

    def restored(self) -> List[RestoredIssue]:
        """Issues with work left, in log order, capped by max_count."""
        pending = [r for r in load_restored(self.checkpoint_path) if r.step < Step.LOCK_DONE]
        limit = self._migration.max_count
        if limit and len(pending) > limit:
            LOG.info("Processing limit reached (%d), leaving %d issue(s) for later", limit, len(pending) - limit)
            pending = pending[:limit]
        return pending

    def targets(self) -> Iterator[ResumeTarget]:
        """Yield resume targets; issues that cannot be fetched are skipped."""
        for restored in self.restored():
            try:
                issue = self._github.get_issue(restored.full_name, restored.number)
            except GitPlatformError as e:
                LOG.warning("Skip %s: error getting issue: %s", restored.url, e)
                continue
            yield ResumeTarget(issue=issue, done=restored.step, topic_url=restored.extra)

    def run(self, mode: RunMode) -> RunStats:
        """Finish every restored issue with ``mode``; halts on the first failure."""
        total = RunStats()
        for target in self.targets():
            try:
                stats = mode.run([], resume_target=target)
            except RunHaltedError as e:
                raise RunHaltedError(str(e), total.merge(e.stats)) from e
            total = total.merge(stats)
        return total
