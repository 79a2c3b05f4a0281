"""
Run modes: dry (classify and count) and live (migrate and checkpoint).

Both share the issue loop below, so they classify identical input the same
way and differ only in whether side effects happen.
"""

import contextlib
import logging
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, ContextManager, Iterator, List

from pydantic import BaseModel

from issue_migrator.adapters.base import ForumAdapter, ForumError, GitPlatformAdapter, GitPlatformError
from issue_migrator.config import DiscourseConfig, MigrationConfig
from issue_migrator.migration.checkpoint import CheckpointLog, Step, steps_after
from issue_migrator.migration.classifier import is_pull_request, is_stale
from issue_migrator.migration.errors import MigrationError, RunHaltedError
from issue_migrator.migration.sequencer import StepSequencer
from issue_migrator.models import Issue, RunStats

LOG = logging.getLogger("issue_migrator.migration.run_modes")

RUN_MODES = ("dry", "live")


class ResumeTarget(BaseModel):
    """Restored issue joined with its re-fetched live state."""

    issue: Issue
    done: Step
    topic_url: str = ""


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RunMode(ABC):
    """Processes a list of issues; raises RunHaltedError on the first failure."""

    name = ""

    def __init__(self, migration: MigrationConfig, now: Callable[[], datetime] = _utcnow) -> None:
        self._migration = migration
        self._now = now
        self._started = False

    def run(self, issues: List[Issue], resume_target: ResumeTarget | None = None) -> RunStats:
        """Finish ``resume_target`` first (if any), then process ``issues``."""
        stats = RunStats()
        with self._session():
            if resume_target is not None:
                self._pause()
                self._guard(resume_target.issue, stats, lambda: self._finish(resume_target, stats))
            for index, issue in enumerate(issues):
                self._pause()
                LOG.info("Processing issue (%d/%d) %s", index + 1, len(issues), issue.html_url)

                if is_pull_request(issue):
                    stats.pull_request += 1
                    LOG.info("Skip %s: is pull request", issue.html_url)
                    continue

                limit = self._migration.max_count
                if limit and stats.processed >= limit:
                    LOG.info("Processing limit reached (%d), skipping remaining issues", limit)
                    break

                stale = is_stale(issue, self._now(), self._migration.stale_months)
                if stale:
                    stats.stale += 1
                else:
                    stats.active += 1
                LOG.info("%s is %s", issue.html_url, "stale" if stale else "active")
                self._guard(issue, stats, lambda: self._process(issue, stale, stats))
        return stats

    def _pause(self) -> None:
        """Sleep before every issue but the first this mode handles, across runs."""
        if self._started:
            # avoid throttling
            time.sleep(self._migration.delay_seconds)
        self._started = True

    def _guard(self, issue: Issue, stats: RunStats, work: Callable[[], None]) -> None:
        try:
            work()
        except (GitPlatformError, ForumError, MigrationError) as e:
            raise RunHaltedError(f"process issue {issue.html_url}: {e}", stats) from e

    def _session(self) -> ContextManager[None]:
        """Resources held for the whole run."""
        return contextlib.nullcontext()

    @abstractmethod
    def _process(self, issue: Issue, stale: bool, stats: RunStats) -> None:
        """Handle one classified (non pull request) issue."""
        ...

    @abstractmethod
    def _finish(self, target: ResumeTarget, stats: RunStats) -> None:
        """Complete an issue interrupted by an earlier run."""
        ...


class DryRun(RunMode):
    """Never calls GitHub or Discourse; reports what a live run would do."""

    name = "dry"

    def _process(self, issue: Issue, stale: bool, stats: RunStats) -> None:
        stats.processed += 1

    def _finish(self, target: ResumeTarget, stats: RunStats) -> None:
        pending = [s.name for s in steps_after(target.done)]
        LOG.info(
            "Continuing %s from %s, would run: %s",
            target.issue.html_url,
            target.done.name,
            ", ".join(pending) or "nothing",
        )


class LiveRun(RunMode):
    """Migrates issues, appending a checkpoint after every step."""

    name = "live"

    def __init__(
        self,
        github: GitPlatformAdapter,
        forum: ForumAdapter,
        migration: MigrationConfig,
        discourse: DiscourseConfig,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(migration, now=now)
        self._github = github
        self._forum = forum
        self._discourse = discourse
        self._sequencer: StepSequencer | None = None

    @property
    def checkpoint_path(self) -> Path:
        return self._migration.checkpoint_log

    @contextlib.contextmanager
    def _session(self) -> Iterator[None]:
        with CheckpointLog(self.checkpoint_path) as checkpoints:
            self._sequencer = StepSequencer(
                self._github, self._forum, checkpoints, self._migration, self._discourse
            )
            try:
                yield
            finally:
                self._sequencer = None

    def _require_session(self) -> StepSequencer:
        if self._sequencer is None:
            raise MigrationError("live run used outside its session")
        return self._sequencer

    def _process(self, issue: Issue, stale: bool, stats: RunStats) -> None:
        self._require_session().advance(issue, stale=stale)
        stats.processed += 1

    def _finish(self, target: ResumeTarget, stats: RunStats) -> None:
        sequencer = self._require_session()
        LOG.info("Continuing %s after %s", target.issue.html_url, target.done.name)
        if target.done is Step.LOCK_DONE:
            return
        sequencer.advance(target.issue, done=target.done, topic_url=target.topic_url)
        stats.processed += 1


def get_run_mode(
    name: str,
    migration: MigrationConfig,
    discourse: DiscourseConfig,
    github: GitPlatformAdapter | None = None,
    forum: ForumAdapter | None = None,
) -> RunMode:
    """Build the run mode called ``name`` (dry or live)."""
    if name == "dry":
        return DryRun(migration)
    if name == "live":
        if github is None or forum is None:
            raise ValueError("live run needs GitHub and Discourse adapters")
        return LiveRun(github, forum, migration, discourse)
    raise ValueError(f"unknown run mode {name!r} (expected one of {', '.join(RUN_MODES)})")
