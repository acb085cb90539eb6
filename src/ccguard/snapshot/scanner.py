"""Project scanning and affected-file detection."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from .content import digest
from .counting import count_lines
from .ignore import IgnoreRules
from .models import FileRecord, KnownPaths, UnknownPaths

if TYPE_CHECKING:
    from ccguard.hooks.models import HookEvent

LOGGER = logging.getLogger(__name__)

BINARY_EXTENSIONS = frozenset(
    {
        # images
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".bmp",
        ".ico",
        ".svg",
        ".webp",
        # documents
        ".pdf",
        ".doc",
        ".docx",
        ".xls",
        ".xlsx",
        ".ppt",
        ".pptx",
        # archives
        ".zip",
        ".tar",
        ".gz",
        ".rar",
        ".7z",
        # executables and objects
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".pyc",
        ".class",
        ".o",
        ".a",
        # media
        ".mp3",
        ".mp4",
        ".avi",
        ".mov",
        ".wmv",
        # fonts
        ".ttf",
        ".otf",
        ".woff",
        ".woff2",
        # databases
        ".db",
        ".sqlite",
    }
)
MINIFIED_SUFFIXES = (".min.js", ".min.css")

# Tools that report the single file they modify, keyed to the input field.
PATH_TOOLS = {
    "Edit": "file_path",
    "MultiEdit": "file_path",
    "Write": "file_path",
    "NotebookEdit": "notebook_path",
}


def is_binary_path(path: Path | str) -> bool:
    """Return True if ``path`` looks like a binary or minified asset."""
    name = Path(path).name.lower()
    if name.endswith(MINIFIED_SUFFIXES):
        return True
    return Path(name).suffix in BINARY_EXTENSIONS


class ProjectScanner:
    """Count lines of every tracked text file under a project root."""

    def __init__(
        self,
        root: Path,
        *,
        ignore_rules: IgnoreRules | None = None,
        ignore_empty_lines: bool = True,
        extra_patterns: Iterable[str] = (),
        use_ignore_file: bool = True,
    ) -> None:
        self.root = root.expanduser().resolve()
        self.ignore_rules = ignore_rules or IgnoreRules(
            self.root,
            extra_patterns=extra_patterns,
            use_ignore_file=use_ignore_file,
        )
        self.ignore_empty_lines = ignore_empty_lines

    def scan_project(self) -> dict[str, FileRecord]:
        """Scan every tracked file under the root."""
        records: dict[str, FileRecord] = {}
        for path in self.ignore_rules.iter_tracked_files():
            if is_binary_path(path):
                continue
            record = self._record(path)
            if record is not None:
                records[record.path] = record
        LOGGER.debug("Scanned %d files under %s", len(records), self.root)
        return records

    def scan_files(self, paths: Iterable[Path | str]) -> dict[str, FileRecord]:
        """Scan only ``paths``; ignored, missing and unreadable paths are skipped."""
        records: dict[str, FileRecord] = {}
        for path in paths:
            record = self.scan_file(path)
            if record is not None:
                records[record.path] = record
        return records

    def scan_file(self, path: Path | str) -> FileRecord | None:
        located = self.canonical(path)
        if located is None or not self.is_countable(located):
            return None
        return self._record(located)

    def list_candidates(self) -> list[str]:
        """Return every countable path without reading file contents."""
        return [
            str(path)
            for path in self.ignore_rules.iter_tracked_files()
            if not is_binary_path(path)
        ]

    def read_bytes(self, path: Path | str) -> bytes | None:
        try:
            return Path(path).read_bytes()
        except OSError:
            return None

    def canonical(self, path: Path | str) -> Path | None:
        """Return the absolute path keyed in snapshots, or None outside the root."""
        return self.ignore_rules.locate(path)

    def is_countable(self, path: Path | str) -> bool:
        """Return True if ``path`` would be counted by a full scan."""
        if is_binary_path(path):
            return False
        return not self.ignore_rules.is_ignored(path, is_dir=False)

    def affected_paths(self, event: "HookEvent") -> KnownPaths | UnknownPaths:
        """Determine which files a tool invocation touches.

        Only tools with an explicit target path narrow the rescan; shell
        commands and unrecognized tools yield :class:`UnknownPaths`.
        """
        field = PATH_TOOLS.get(event.tool_name or "")
        if field is None:
            return UnknownPaths()
        raw = (event.tool_input or {}).get(field)
        if not isinstance(raw, str) or not raw.strip():
            return UnknownPaths()
        located = self.canonical(raw)
        if located is None:
            LOGGER.debug("Ignoring %s target outside project root: %s", event.tool_name, raw)
            return KnownPaths(paths=())
        return KnownPaths(paths=(str(located),))

    def _record(self, path: Path) -> FileRecord | None:
        try:
            data = path.read_bytes()
            stat = path.stat()
        except OSError as exc:
            LOGGER.debug("Skipping unreadable file %s: %s", path, exc)
            return None
        text = data.decode("utf-8", errors="replace")
        return FileRecord(
            path=str(path),
            line_count=count_lines(text, self.ignore_empty_lines),
            content_hash=digest(data),
            last_modified=stat.st_mtime,
        )


__all__ = ["BINARY_EXTENSIONS", "PATH_TOOLS", "ProjectScanner", "is_binary_path"]
