"""Thin wrapper around the ``git`` binary used during reverts."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from .errors import RevertError

LOGGER = logging.getLogger(__name__)


class GitRepository:
    """Run git commands against the working tree containing ``root``."""

    def __init__(self, root: Path, *, executable: str = "git") -> None:
        self.root = root
        self.executable = executable

    @property
    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def is_repo(self) -> bool:
        if not self.available:
            return False
        result = self._run(["rev-parse", "--is-inside-work-tree"], check=False)
        return result.returncode == 0 and result.stdout.strip() == "true"

    def is_tracked(self, path: Path | str) -> bool:
        """Return True if ``path`` exists in the ``HEAD`` revision."""
        if not self.is_repo():
            return False
        result = self._run(["ls-files", "--error-unmatch", "--", str(path)], check=False)
        if result.returncode != 0:
            return False
        head = self._run(["cat-file", "-e", f"HEAD:./{self._relative(path)}"], check=False)
        return head.returncode == 0

    def checkout(self, path: Path | str, revision: str = "HEAD") -> None:
        """Restore ``path`` from ``revision``.

        Raises:
            RevertError: If git exits with a non-zero status.
        """
        self._run(["checkout", revision, "--", str(path)])

    def _relative(self, path: Path | str) -> str:
        candidate = Path(path)
        try:
            return candidate.relative_to(self.root).as_posix()
        except ValueError:
            return candidate.as_posix()

    def _run(self, args: list[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
        command = [self.executable, *args]
        try:
            result = subprocess.run(
                command,
                cwd=self.root,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise RevertError(f"Could not run {' '.join(command)}: {exc}") from exc
        if check and result.returncode != 0:
            message = result.stderr.strip() or result.stdout.strip()
            raise RevertError(f"{' '.join(command)} failed: {message}")
        LOGGER.debug("%s -> %d", " ".join(command), result.returncode)
        return result


__all__ = ["GitRepository"]
