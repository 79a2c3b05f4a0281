"""
Drive one issue through the fixed migration steps.

Order: Discourse topic (active issues only) -> comment -> close -> lock.
Every external call must succeed before its checkpoint is appended; the
first failure propagates and leaves the last checkpoint as resume point.
Nothing is rolled back.
"""

import logging
from typing import Callable

from issue_migrator.adapters.base import ForumAdapter, GitPlatformAdapter
from issue_migrator.config import DiscourseConfig, MigrationConfig
from issue_migrator.migration.checkpoint import CheckpointLog, CheckpointRecord, Step, steps_after
from issue_migrator.migration.errors import CheckpointError
from issue_migrator.models import Issue

LOG = logging.getLogger("issue_migrator.migration.sequencer")


def topic_title(issue: Issue, run_id: str = "") -> str:
    if run_id:
        return f"[test][{run_id}] {issue.title}"
    return issue.title


def topic_body(issue: Issue) -> str:
    """Issue body plus a footer pointing back at the GitHub issue."""
    footer = f"Originally opened by @{issue.author} at {issue.html_url}"
    body = issue.body.strip()
    if not body:
        return footer
    return f"{body}\n\n---\n{footer}"


class StepSequencer:
    """Runs the steps after a given one for an issue, checkpointing each."""

    def __init__(
        self,
        github: GitPlatformAdapter,
        forum: ForumAdapter,
        checkpoints: CheckpointLog,
        migration: MigrationConfig,
        discourse: DiscourseConfig,
    ) -> None:
        self._github = github
        self._forum = forum
        self._checkpoints = checkpoints
        self._migration = migration
        self._discourse = discourse
        self._handlers: dict[Step, Callable[[Issue, str], str]] = {
            Step.DISCOURSE_DONE: self._post_topic,
            Step.COMMENT_DONE: self._comment,
            Step.CLOSE_DONE: self._close,
            Step.LOCK_DONE: self._lock,
        }

    def advance(
        self,
        issue: Issue,
        done: Step | None = None,
        stale: bool = False,
        topic_url: str = "",
    ) -> Step | None:
        """Run every step after ``done`` and return the last completed one.

        ``done=None`` starts from scratch: stale issues skip the Discourse
        topic. When resuming, ``topic_url`` is the restored Discourse URL.
        """
        last = done
        for step in steps_after(done):
            if step is Step.DISCOURSE_DONE and stale:
                LOG.info("  %s is stale, no Discourse topic", issue.html_url)
                continue
            topic_url = self._handlers[step](issue, topic_url)
            extra = topic_url if step is Step.DISCOURSE_DONE else ""
            self._save(CheckpointRecord(issue_url=issue.html_url, step=step, extra=extra))
            last = step
        return last

    def _save(self, record: CheckpointRecord) -> None:
        try:
            self._checkpoints.append(record)
        except OSError as e:
            raise CheckpointError(f"process: {e}") from e
        LOG.info("  %s: %s", record.step.name, record.extra or record.issue_url)

    def _post_topic(self, issue: Issue, topic_url: str) -> str:
        title = topic_title(issue, self._migration.run_id)
        url = self._forum.create_topic(title, topic_body(issue), self._discourse.category_id)
        LOG.info("  Migrated to Discourse: %s", url)
        return url

    def comment_body(self, issue: Issue, topic_url: str) -> str:
        """Active template when the issue has a topic, stale template otherwise."""
        template = self._migration.active_comment if topic_url else self._migration.stale_comment
        return template.format(author=issue.author, topic_url=topic_url, forum_url=self._discourse.category_url)

    def _comment(self, issue: Issue, topic_url: str) -> str:
        self._github.create_comment(issue.full_name, issue.number, self.comment_body(issue, topic_url))
        return topic_url

    def _close(self, issue: Issue, topic_url: str) -> str:
        if issue.state == "closed":
            LOG.info("  %s already closed upstream", issue.html_url)
        else:
            self._github.close_issue(issue.full_name, issue.number)
        return topic_url

    def _lock(self, issue: Issue, topic_url: str) -> str:
        if issue.locked:
            LOG.info("  %s already locked upstream", issue.html_url)
        else:
            self._github.lock_issue(issue.full_name, issue.number)
        return topic_url
