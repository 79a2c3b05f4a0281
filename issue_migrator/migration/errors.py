"""Errors raised by the migration core."""

from issue_migrator.models import RunStats


class MigrationError(Exception):
    """Base class for migration failures."""

    pass


class CheckpointError(MigrationError):
    """Checkpoint log could not be written or read; always fatal to the run."""

    pass


class RunHaltedError(MigrationError):
    """A run stopped at the first failing issue.

    Carries the stats accumulated up to the failure.
    """

    def __init__(self, message: str, stats: RunStats) -> None:
        super().__init__(message)
        self.stats = stats
