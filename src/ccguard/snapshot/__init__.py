"""Snapshot, diff and revert machinery."""

from .content import ContentStore, digest
from .counting import count_lines
from .differ import compare_snapshots
from .errors import RevertError, SnapshotError
from .git import GitRepository
from .ignore import IgnoreRules
from .models import (
    AffectedPaths,
    FileDelta,
    FileRecord,
    KnownPaths,
    LineTotalRecord,
    ProjectSnapshot,
    SnapshotDiff,
    SnapshotSummary,
    ThresholdCheck,
    UnknownPaths,
    requires_full_rescan,
)
from .revert import RevertEngine, RevertResult
from .scanner import ProjectScanner
from .store import SnapshotStore
from .threshold import LimitPolicy, evaluate, is_exceeded

__all__ = [
    "AffectedPaths",
    "ContentStore",
    "FileDelta",
    "FileRecord",
    "GitRepository",
    "IgnoreRules",
    "KnownPaths",
    "LimitPolicy",
    "LineTotalRecord",
    "ProjectScanner",
    "ProjectSnapshot",
    "RevertEngine",
    "RevertError",
    "RevertResult",
    "SnapshotDiff",
    "SnapshotError",
    "SnapshotStore",
    "SnapshotSummary",
    "ThresholdCheck",
    "UnknownPaths",
    "compare_snapshots",
    "count_lines",
    "digest",
    "evaluate",
    "is_exceeded",
    "requires_full_rescan",
]
