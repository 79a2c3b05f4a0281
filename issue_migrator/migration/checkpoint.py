"""Checkpoint store: append-only log of completed migration steps.

One record per line: ``<issue_url> <step> <extra>``. ``extra`` holds the
Discourse topic URL and is empty for every step but DISCOURSE_DONE. The log
is never edited in place; resume folds it into the furthest step per issue.
"""

import logging
import os
from enum import IntEnum
from pathlib import Path
from types import TracebackType
from typing import IO, Dict, Iterable, List

from pydantic import BaseModel

from issue_migrator.migration.errors import CheckpointError

LOG = logging.getLogger("issue_migrator.migration.checkpoint")


class Step(IntEnum):
    """Furthest completed action for an issue, in execution order."""

    DISCOURSE_DONE = 1
    COMMENT_DONE = 2
    CLOSE_DONE = 3
    LOCK_DONE = 4


def steps_after(done: Step | None) -> List[Step]:
    """Steps still to run when ``done`` is the last completed one."""
    return [s for s in Step if done is None or s > done]


class MalformedRecordError(ValueError):
    """Checkpoint line that cannot be parsed."""

    pass


def _issue_path(url: str) -> tuple[str, str, int]:
    """https://github.com/owner/repo/issues/12 -> (owner, repo, 12)."""
    fragments = url.split("/")
    if len(fragments) < 7 or not fragments[3] or not fragments[4]:
        raise MalformedRecordError(f"not an issue URL: {url}")
    try:
        number = int(fragments[6])
    except ValueError:
        raise MalformedRecordError(f"non-numeric issue number in {url}") from None
    return fragments[3], fragments[4], number


class CheckpointRecord(BaseModel):
    """One line of the checkpoint log."""

    issue_url: str
    step: Step
    extra: str = ""

    def to_line(self) -> str:
        extra = self.extra if self.step is Step.DISCOURSE_DONE else ""
        return f"{self.issue_url} {int(self.step)} {extra}\n"

    @classmethod
    def from_line(cls, line: str) -> "CheckpointRecord":
        """Parse a log line; raises MalformedRecordError."""
        fields = line.rstrip("\r\n").split(" ")
        if len(fields) not in (2, 3) or not fields[0]:
            raise MalformedRecordError(f"expected 3 fields, got {len(fields)}")
        url, raw_step = fields[0], fields[1]
        extra = fields[2] if len(fields) == 3 else ""
        try:
            step = Step(int(raw_step))
        except ValueError:
            raise MalformedRecordError(f"invalid step {raw_step!r}") from None
        _issue_path(url)
        if step is Step.DISCOURSE_DONE and not extra:
            raise MalformedRecordError("missing topic URL for DISCOURSE_DONE")
        return cls(issue_url=url, step=step, extra=extra if step is Step.DISCOURSE_DONE else "")


class RestoredIssue(BaseModel):
    """Furthest known step of one issue, folded from the log."""

    owner: str
    repo: str
    number: int
    url: str
    step: Step
    extra: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_log(content: str) -> List[CheckpointRecord]:
    """Parse every non-empty line; malformed lines are logged and skipped."""
    records: List[CheckpointRecord] = []
    for lineno, line in enumerate(content.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            records.append(CheckpointRecord.from_line(line))
        except MalformedRecordError as e:
            LOG.warning("Skip checkpoint line %d (%r): %s", lineno, line, e)
    return records


def fold_records(records: Iterable[CheckpointRecord]) -> Dict[str, RestoredIssue]:
    """Map issue URL to its furthest step, in order of first appearance.

    A record with a lower step never lowers the stored one, so duplicate and
    out-of-order lines are harmless.
    """
    restored: Dict[str, RestoredIssue] = {}
    for rec in records:
        current = restored.get(rec.issue_url)
        if current is None:
            owner, repo, number = _issue_path(rec.issue_url)
            restored[rec.issue_url] = RestoredIssue(
                owner=owner,
                repo=repo,
                number=number,
                url=rec.issue_url,
                step=rec.step,
                extra=rec.extra,
            )
            continue
        if rec.step > current.step:
            current.step = rec.step
        if rec.extra and not current.extra:
            current.extra = rec.extra
    return restored


def load_restored(path: Path) -> List[RestoredIssue]:
    """Read the whole log and fold it; unreadable log raises CheckpointError."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CheckpointError(f"could not read checkpoint log {path}: {e}") from e
    return list(fold_records(parse_log(content)).values())


class CheckpointLog:
    """Append handle on the log, durable after every record.

    Use as a context manager so the file is closed whatever happens.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._file: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> "CheckpointLog":
        """Open for appending; creates the file (never truncates)."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("a", encoding="utf-8")
        except OSError as e:
            raise CheckpointError(f"open checkpoint log {self._path}: {e}") from e
        return self

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            LOG.warning("Closing checkpoint log %s: %s", self._path, e)
        finally:
            self._file = None

    def __enter__(self) -> "CheckpointLog":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def append(self, record: CheckpointRecord) -> None:
        """Write, flush and fsync one record; OSError propagates."""
        if self._file is None:
            raise CheckpointError(f"checkpoint log {self._path} is not open")
        self._file.write(record.to_line())
        self._file.flush()
        os.fsync(self._file.fileno())
