"""Transactional restoration of files to a snapshot's state."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel

from .content import ContentStore
from .errors import RevertError
from .git import GitRepository
from .models import ProjectSnapshot

LOGGER = logging.getLogger(__name__)

RESTORED = "restored"
DELETED = "deleted"
KEPT = "kept"


class RevertResult(BaseModel):
    """Outcome of a revert attempt."""

    success: bool
    error: Optional[str] = None
    restored: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()


class RevertEngine:
    """Restore files to the state recorded in a snapshot.

    Each path is restored from captured content when its bytes are held,
    otherwise from git ``HEAD`` when tracked, otherwise deleted. Paths the
    snapshot never recorded are deleted unless listed as kept. If any path
    fails, every path is rolled back to the bytes it held before the attempt.
    """

    def __init__(
        self,
        root: Path,
        *,
        content_store: ContentStore | None = None,
        git: GitRepository | None = None,
        use_git: bool = True,
    ) -> None:
        self.root = root.expanduser().resolve()
        self.content_store = content_store
        self.git = git if git is not None else (GitRepository(self.root) if use_git else None)

    def revert_to_snapshot(
        self,
        paths: Iterable[str],
        target: ProjectSnapshot,
        *,
        keep: Iterable[str] = (),
    ) -> RevertResult:
        """Make every path in ``paths`` match ``target``.

        Args:
            paths: Absolute paths touched by the rejected operation.
            target: Snapshot taken before the operation.
            keep: Paths known to have existed before the operation. They are
                never deleted, even when ``target`` holds no record of them.

        Returns:
            RevertResult: ``success`` is False when the attempt was rolled back.
        """
        ordered = sorted(dict.fromkeys(str(p) for p in paths))
        kept = frozenset(str(p) for p in keep)
        try:
            backup = self._backup(ordered)
        except OSError as exc:
            LOGGER.error("Could not back up files before revert: %s", exc)
            return RevertResult(success=False, error=f"Backup failed: {exc}")
        restored: list[str] = []
        deleted: list[str] = []
        try:
            for path in ordered:
                outcome = self._restore(path, target, kept)
                if outcome == RESTORED:
                    restored.append(path)
                elif outcome == DELETED and backup.get(path) is not None:
                    deleted.append(path)
        except (OSError, RevertError) as exc:
            LOGGER.error("Revert failed, rolling back %d path(s): %s", len(ordered), exc)
            rollback_errors = self._rollback(backup)
            message = str(exc)
            if rollback_errors:
                message += "; rollback incomplete for " + ", ".join(rollback_errors)
            return RevertResult(success=False, error=message)

        LOGGER.info("Reverted %d path(s), deleted %d", len(restored), len(deleted))
        return RevertResult(success=True, restored=tuple(restored), deleted=tuple(deleted))

    def _restore(self, path: str, target: ProjectSnapshot, kept: frozenset[str]) -> str:
        """Restore one path and return ``RESTORED``, ``DELETED`` or ``KEPT``."""
        record = target.files.get(path)
        if record is None:
            if path in kept:
                LOGGER.warning(
                    "%s existed before the operation but was not recorded; keeping it", path
                )
                return KEPT
            Path(path).unlink(missing_ok=True)
            self._prune_created_dirs(Path(path), target)
            return DELETED

        if self.content_store is not None:
            data = self.content_store.get(record.content_hash)
            if data is not None:
                _write_bytes(Path(path), data)
                return RESTORED

        if self.git is not None and self.git.is_tracked(path):
            self.git.checkout(path, "HEAD")
            return RESTORED

        LOGGER.warning("No recorded content for %s; deleting it", path)
        Path(path).unlink(missing_ok=True)
        return DELETED

    def _prune_created_dirs(self, path: Path, target: ProjectSnapshot) -> None:
        """Remove empty parents of ``path`` that held no recorded file."""
        occupied = {parent for recorded in target.files for parent in Path(recorded).parents}
        for parent in path.parents:
            if parent == self.root or self.root not in parent.parents or parent in occupied:
                return
            try:
                parent.rmdir()
            except OSError:
                return
            LOGGER.debug("Removed empty directory %s", parent)

    def _backup(self, paths: list[str]) -> dict[str, bytes | None]:
        backup: dict[str, bytes | None] = {}
        for path in paths:
            try:
                backup[path] = Path(path).read_bytes()
            except FileNotFoundError:
                backup[path] = None
        return backup

    def _rollback(self, backup: dict[str, bytes | None]) -> list[str]:
        failures: list[str] = []
        for path, data in backup.items():
            try:
                if data is None:
                    Path(path).unlink(missing_ok=True)
                else:
                    _write_bytes(Path(path), data)
            except OSError as exc:
                LOGGER.error("Rollback of %s failed: %s", path, exc)
                failures.append(path)
        return failures


def _write_bytes(path: Path, data: bytes) -> None:
    # Rewriting in place keeps the file's mode and ownership.
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


__all__ = ["RevertEngine", "RevertResult"]
