"""Guard activation state, session statistics and explicit checkpoints."""

from __future__ import annotations

import logging
from pathlib import Path

from ccguard.config import GuardConfig
from ccguard.snapshot import ProjectScanner, SnapshotStore, SnapshotSummary
from ccguard.storage import GuardState, SessionStats, Storage

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class GuardManager:
    """Coordinate the guard's persisted state for one project."""

    def __init__(
        self,
        storage: Storage,
        config: GuardConfig | None = None,
        root: Path | None = None,
    ) -> None:
        self.storage = storage
        self.config = config or GuardConfig()
        self.root = (root or Path.cwd()).expanduser().resolve()
        self._store: SnapshotStore | None = None

    def is_enabled(self) -> bool:
        state = self.storage.get_guard_state()
        if state is None:
            return self.config.guard.enabled_by_default
        return state.enabled

    def enable(self) -> None:
        self.storage.save_guard_state(GuardState(enabled=True))
        LOGGER.info("Guard enabled")

    def disable(self) -> None:
        self.storage.save_guard_state(GuardState(enabled=False))
        LOGGER.info("Guard disabled")

    def get_session_stats(self) -> SessionStats | None:
        return self.storage.get_session_stats()

    def update_session_stats(self, lines_added: int, lines_removed: int) -> SessionStats:
        """Fold one approved operation into the running session totals."""
        current = self.storage.get_session_stats() or SessionStats()
        updated = current.record(lines_added, lines_removed)
        self.storage.save_session_stats(updated)
        return updated

    def reset_stats(self) -> None:
        self.storage.save_session_stats(SessionStats())

    def is_snapshot_mode(self) -> bool:
        return self.config.enforcement.strategy == "snapshot"

    def snapshot_store(self) -> SnapshotStore:
        """Return the project's snapshot store, building it on first use."""
        if self._store is None:
            scanner = ProjectScanner(
                self.root,
                ignore_empty_lines=self.config.enforcement.ignore_empty_lines,
                extra_patterns=self.config.scan.extra_ignore_patterns,
                use_ignore_file=self.config.scan.respect_gitignore,
            )
            self._store = SnapshotStore(scanner, self.storage)
        return self._store

    def take_snapshot(self, session_id: str | None = None) -> SnapshotSummary:
        """Checkpoint the project as the new fixed baseline.

        Args:
            session_id: Session to checkpoint. Defaults to ``"default"``.

        Returns:
            SnapshotSummary: Totals recorded for the new baseline.
        """
        snapshot = self.snapshot_store().initialize_baseline(session_id or DEFAULT_SESSION_ID)
        return SnapshotSummary(
            total_line_count=snapshot.total_line_count,
            file_count=snapshot.file_count,
            timestamp=snapshot.timestamp,
        )


__all__ = ["DEFAULT_SESSION_ID", "GuardManager"]
