"""Migration core: checkpoint store, classifier, step sequencer, run modes, resume."""

from issue_migrator.migration.checkpoint import (
    CheckpointLog,
    CheckpointRecord,
    RestoredIssue,
    Step,
    fold_records,
    load_restored,
    parse_log,
)
from issue_migrator.migration.classifier import is_pull_request, is_stale
from issue_migrator.migration.errors import CheckpointError, MigrationError, RunHaltedError
from issue_migrator.migration.resume import ResumeController
from issue_migrator.migration.run_modes import DryRun, LiveRun, ResumeTarget, RunMode, get_run_mode
from issue_migrator.migration.sequencer import StepSequencer

__all__ = [
    "CheckpointError",
    "CheckpointLog",
    "CheckpointRecord",
    "DryRun",
    "LiveRun",
    "MigrationError",
    "RestoredIssue",
    "ResumeController",
    "ResumeTarget",
    "RunHaltedError",
    "RunMode",
    "Step",
    "StepSequencer",
    "fold_records",
    "get_run_mode",
    "is_pull_request",
    "is_stale",
    "load_restored",
    "parse_log",
]
