"""Snapshot data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_snapshot_id() -> str:
    return uuid4().hex


class FileRecord(BaseModel):
    """Line count and content digest of one tracked file.

    Attributes:
        path: Absolute, canonical path of the file.
        line_count: Lines counted under the configured counting rule.
        content_hash: SHA-256 digest of the raw bytes.
        last_modified: Modification time in epoch seconds; advisory only.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    line_count: int = Field(ge=0)
    content_hash: str
    last_modified: float = 0.0


class ProjectSnapshot(BaseModel):
    """Point-in-time view of every tracked file in a project.

    Snapshots are never edited; a new snapshot supersedes an old one. The
    total line count is derived from ``files`` on every access so it cannot
    drift from the records it summarizes.

    Persisted form stores ``files`` as a list of ``[path, record]`` pairs.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_snapshot_id)
    session_id: str
    timestamp: datetime = Field(default_factory=_now)
    files: Dict[str, FileRecord] = Field(default_factory=dict)
    is_baseline: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_line_count(self) -> int:
        return sum(record.line_count for record in self.files.values())

    @property
    def file_count(self) -> int:
        return len(self.files)

    @field_validator("files", mode="before")
    @classmethod
    def _files_from_pairs(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return {str(path): record for path, record in value}
        return value

    @field_serializer("files")
    def _files_to_pairs(self, files: Dict[str, FileRecord]) -> list[list[Any]]:
        return [[path, record.model_dump()] for path, record in files.items()]


class FileDelta(BaseModel):
    """Line counts of one changed path on both sides of a comparison."""

    model_config = ConfigDict(frozen=True)

    before: int
    after: int
    delta: int


class SnapshotDiff(BaseModel):
    """Differences between two snapshots.

    Attributes:
        added: Paths present only in the later snapshot.
        removed: Paths present only in the earlier snapshot.
        modified: Paths whose content hash changed.
        total_delta: Later total minus earlier total.
        per_file: Line counts for every path in the three sets above.
    """

    model_config = ConfigDict(frozen=True)

    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()
    total_delta: int = 0
    per_file: Dict[str, FileDelta] = Field(default_factory=dict)

    @property
    def lines_added(self) -> int:
        return sum(entry.delta for entry in self.per_file.values() if entry.delta > 0)

    @property
    def lines_removed(self) -> int:
        return sum(-entry.delta for entry in self.per_file.values() if entry.delta < 0)

    @property
    def changed_paths(self) -> Tuple[str, ...]:
        return tuple(sorted(self.per_file))

    @property
    def is_empty(self) -> bool:
        return not self.per_file


class ThresholdCheck(BaseModel):
    """Outcome of comparing a line total with a reference total."""

    model_config = ConfigDict(frozen=True)

    exceeded: bool
    current: int
    baseline: int
    delta: int
    allowed: int = 0

    @property
    def exceeded_by(self) -> int:
        return max(0, self.delta - self.allowed)


class KnownPaths(BaseModel):
    """Operation that reports the files it touches."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["known"] = "known"
    paths: Tuple[str, ...] = ()


class UnknownPaths(BaseModel):
    """Operation whose touched files cannot be known; forces a full rescan."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unknown"] = "unknown"


AffectedPaths = Annotated[Union[KnownPaths, UnknownPaths], Field(discriminator="kind")]


def requires_full_rescan(affected: KnownPaths | UnknownPaths) -> bool:
    """Return True when ``affected`` cannot narrow a rescan."""
    return isinstance(affected, UnknownPaths) or not affected.paths


class LineTotalRecord(BaseModel):
    """Persisted project total (baseline threshold or current valid total)."""

    total_line_count: int
    timestamp: datetime = Field(default_factory=_now)
    snapshot_id: str
    version: Optional[int] = None
    corrected_at: Optional[datetime] = None
    reason: Optional[str] = None


class SnapshotSummary(BaseModel):
    """Result of an explicit checkpoint."""

    total_line_count: int
    file_count: int
    timestamp: datetime


__all__ = [
    "AffectedPaths",
    "FileDelta",
    "FileRecord",
    "KnownPaths",
    "LineTotalRecord",
    "ProjectSnapshot",
    "SnapshotDiff",
    "SnapshotSummary",
    "ThresholdCheck",
    "UnknownPaths",
    "new_snapshot_id",
    "requires_full_rescan",
]
