"""Session snapshot bookkeeping backed by durable storage."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ccguard.storage import Storage

from .differ import compare_snapshots
from .models import (
    KnownPaths,
    LineTotalRecord,
    ProjectSnapshot,
    SnapshotDiff,
    ThresholdCheck,
    UnknownPaths,
    requires_full_rescan,
)
from .scanner import ProjectScanner
from .threshold import evaluate

LOGGER = logging.getLogger(__name__)

BASELINE_KEY = "snapshot:baseline:{session}"
BASELINE_THRESHOLD_KEY = "snapshot:baseline:threshold:{session}"
CURRENT_TOTAL_KEY = "snapshot:current:{session}"
LAST_VALID_KEY = "snapshot:lastvalid:{session}"
PRE_OPERATION_KEY = "snapshot:pre:{session}:latest"


class SnapshotStore:
    """Track the baseline and last-valid snapshots of one project.

    Every hook invocation is a new process, so both references are persisted
    through ``storage`` and reloaded on demand. The persisted current total is
    cross-checked against a full rescan before each operation and corrected
    when files changed behind the guard's back.
    """

    def __init__(self, scanner: ProjectScanner, storage: Storage) -> None:
        self.scanner = scanner
        self.storage = storage
        self._baseline: ProjectSnapshot | None = None
        self._last_valid: ProjectSnapshot | None = None

    def capture(self, session_id: str, *, is_baseline: bool = False) -> ProjectSnapshot:
        """Return a snapshot built from a full project scan."""
        return ProjectSnapshot(
            session_id=session_id,
            files=self.scanner.scan_project(),
            is_baseline=is_baseline,
        )

    def get_baseline(self, session_id: str) -> ProjectSnapshot:
        """Return the session baseline, creating one only if none exists."""
        if self._baseline is not None and self._baseline.session_id == session_id:
            return self._baseline
        stored = self._load_snapshot(BASELINE_KEY.format(session=session_id))
        if stored is not None:
            self._baseline = stored
            return stored
        return self.initialize_baseline(session_id)

    def initialize_baseline(self, session_id: str) -> ProjectSnapshot:
        """Scan the project and make the result the fixed baseline and last-valid state."""
        snapshot = self.capture(session_id, is_baseline=True)
        self.storage.set(
            BASELINE_KEY.format(session=session_id),
            snapshot.model_dump(mode="json"),
        )
        self._save_total(
            BASELINE_THRESHOLD_KEY.format(session=session_id),
            LineTotalRecord(total_line_count=snapshot.total_line_count, snapshot_id=snapshot.id),
        )
        self._baseline = snapshot
        self.update_last_valid_snapshot(snapshot)
        LOGGER.info(
            "Initialized baseline for session %s: %d lines in %d files",
            session_id,
            snapshot.total_line_count,
            snapshot.file_count,
        )
        return snapshot

    def take_pre_operation_snapshot(
        self,
        session_id: str,
        affected: KnownPaths | UnknownPaths,
    ) -> ProjectSnapshot:
        """Rescan the whole project and heal the persisted current total if it drifted.

        The affected paths are not used to narrow the scan; a merge against
        state loaded from another process could compound unobserved changes.
        """
        snapshot = self.capture(session_id)
        actual = snapshot.total_line_count
        key = CURRENT_TOTAL_KEY.format(session=session_id)
        stored = self._load_total(key)

        if stored is None:
            self._save_total(
                key,
                LineTotalRecord(total_line_count=actual, snapshot_id=snapshot.id, version=1),
            )
        elif stored.total_line_count != actual:
            LOGGER.warning(
                "Line count drift in session %s: stored %d, actual %d; correcting",
                session_id,
                stored.total_line_count,
                actual,
            )
            self._save_total(
                key,
                LineTotalRecord(
                    total_line_count=actual,
                    snapshot_id=snapshot.id,
                    version=(stored.version or 0) + 1,
                    corrected_at=datetime.now(timezone.utc),
                    reason=f"pre-operation rescan found {actual} lines, stored {stored.total_line_count}",
                ),
            )
        LOGGER.debug(
            "Pre-operation snapshot for %s (%s): %d lines",
            session_id,
            affected.kind,
            actual,
        )
        return snapshot

    def take_post_operation_snapshot(
        self,
        session_id: str,
        affected: KnownPaths | UnknownPaths,
        base: ProjectSnapshot | None = None,
    ) -> ProjectSnapshot:
        """Capture the state after an operation.

        Args:
            session_id: Session the operation belongs to.
            affected: Paths the operation reported touching.
            base: Snapshot to merge rescanned paths into. Defaults to the
                last-valid snapshot.

        Returns:
            ProjectSnapshot: Full rescan when ``affected`` cannot narrow it,
            otherwise ``base`` with the affected and newly created paths
            refreshed.
        """
        if isinstance(affected, UnknownPaths) or requires_full_rescan(affected):
            return self.capture(session_id)

        reference = base if base is not None else self.get_last_valid_snapshot(session_id)
        files = dict(reference.files)
        known = list(affected.paths)
        created = [path for path in self.scanner.list_candidates() if path not in files]
        rescanned = self.scanner.scan_files(dict.fromkeys([*known, *created]))

        for path in known:
            if path not in rescanned:
                files.pop(path, None)
        files.update(rescanned)
        return ProjectSnapshot(session_id=session_id, files=files)

    def update_last_valid_snapshot(self, snapshot: ProjectSnapshot) -> None:
        """Commit ``snapshot`` as the reference for later operations."""
        self._last_valid = snapshot
        key = CURRENT_TOTAL_KEY.format(session=snapshot.session_id)
        previous = self._load_total(key)
        version = (previous.version or 0) + 1 if previous is not None else 1
        self._save_total(
            key,
            LineTotalRecord(
                total_line_count=snapshot.total_line_count,
                snapshot_id=snapshot.id,
                version=version,
            ),
        )
        self.storage.set(
            LAST_VALID_KEY.format(session=snapshot.session_id),
            {
                "snapshot": snapshot.model_dump(mode="json"),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        )

    def get_last_valid_snapshot(self, session_id: str) -> ProjectSnapshot:
        if self._last_valid is not None and self._last_valid.session_id == session_id:
            return self._last_valid
        backup = self.storage.get(LAST_VALID_KEY.format(session=session_id))
        if isinstance(backup, dict):
            snapshot = self._validate_snapshot(backup.get("snapshot"))
            if snapshot is not None:
                self._last_valid = snapshot
                return snapshot
        return self.get_baseline(session_id)

    def get_current_valid_line_count(self, session_id: str) -> int | None:
        record = self._load_total(CURRENT_TOTAL_KEY.format(session=session_id))
        return None if record is None else record.total_line_count

    def get_snapshot_baseline(self, session_id: str) -> int | None:
        record = self._load_total(BASELINE_THRESHOLD_KEY.format(session=session_id))
        return None if record is None else record.total_line_count

    def compare_snapshots(self, before: ProjectSnapshot, after: ProjectSnapshot) -> SnapshotDiff:
        return compare_snapshots(before, after)

    def check_threshold(
        self,
        session_id: str,
        current: ProjectSnapshot,
        allowance: int = 0,
    ) -> ThresholdCheck:
        """Compare ``current`` against the last-valid total."""
        reference = self.get_current_valid_line_count(session_id)
        if reference is None:
            reference = self.get_last_valid_snapshot(session_id).total_line_count
        return evaluate(current.total_line_count, reference, allowance)

    def check_snapshot_threshold(
        self,
        session_id: str,
        current_line_count: int,
        allowance: int = 0,
    ) -> ThresholdCheck:
        """Compare a project total against the fixed baseline.

        When no baseline was ever recorded the current total becomes the
        baseline and the check passes.
        """
        baseline = self.get_snapshot_baseline(session_id)
        if baseline is None:
            self._save_total(
                BASELINE_THRESHOLD_KEY.format(session=session_id),
                LineTotalRecord(
                    total_line_count=current_line_count,
                    snapshot_id=self._last_valid.id if self._last_valid else "implicit",
                ),
            )
            LOGGER.info("No baseline for session %s; recorded %d lines", session_id, current_line_count)
            return evaluate(current_line_count, current_line_count, allowance)
        return evaluate(current_line_count, baseline, allowance)

    def _load_snapshot(self, key: str) -> ProjectSnapshot | None:
        return self._validate_snapshot(self.storage.get(key))

    def _validate_snapshot(self, data: Any) -> ProjectSnapshot | None:
        if not isinstance(data, dict):
            return None
        try:
            return ProjectSnapshot.model_validate(data)
        except ValidationError as exc:
            LOGGER.warning("Discarding unreadable snapshot: %s", exc)
            return None

    def _load_total(self, key: str) -> LineTotalRecord | None:
        data = self.storage.get(key)
        if not isinstance(data, dict):
            return None
        try:
            return LineTotalRecord.model_validate(data)
        except ValidationError as exc:
            LOGGER.warning("Discarding unreadable line total %s: %s", key, exc)
            return None

    def _save_total(self, key: str, record: LineTotalRecord) -> None:
        self.storage.set(key, record.model_dump(mode="json"))


__all__ = [
    "BASELINE_KEY",
    "BASELINE_THRESHOLD_KEY",
    "CURRENT_TOTAL_KEY",
    "LAST_VALID_KEY",
    "PRE_OPERATION_KEY",
    "SnapshotStore",
]
