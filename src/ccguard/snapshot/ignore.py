"""Ignore rules deciding which project files are counted."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

LOGGER = logging.getLogger(__name__)

IGNORE_FILENAME = ".gitignore"

DEFAULT_PATTERNS: tuple[str, ...] = (
    # version control
    ".git",
    ".hg",
    ".svn",
    # dependencies and environments
    "node_modules",
    "bower_components",
    ".venv",
    "venv",
    ".tox",
    "*.egg-info",
    # build output and caches
    "dist",
    "build",
    "coverage",
    ".nyc_output",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    # OS and editor artifacts
    ".DS_Store",
    "Thumbs.db",
    ".vscode",
    ".idea",
    ".env",
    ".env.local",
    # ccguard's own state
    ".ccguard",
)


@dataclass(slots=True, frozen=True)
class IgnoreRule:
    """A single compiled ignore pattern."""

    pattern: str
    regex: re.Pattern[str]
    negated: bool
    directory_only: bool

    def matches(self, relative: str, is_dir: bool) -> bool:
        candidate = f"{relative}/" if is_dir else relative
        return self.regex.search(candidate) is not None


def compile_rule(raw: str) -> IgnoreRule | None:
    """Compile one ignore-file line into a rule.

    Returns ``None`` for blank lines and comments.
    """
    pattern = raw.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negated = pattern.startswith("!")
    if negated:
        pattern = pattern[1:]
    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")
    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern.lstrip("/")
    if not pattern:
        return None

    prefix = "^" if anchored else "(?:^|/)"
    suffix = "/" if directory_only else "(?:$|/)"
    regex = re.compile(prefix + _translate(pattern) + suffix)
    return IgnoreRule(pattern=raw.strip(), regex=regex, negated=negated, directory_only=directory_only)


def _translate(pattern: str) -> str:
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "*":
            if pattern.startswith("**/", index):
                parts.append("(?:.*/)?")
                index += 3
                continue
            if pattern.startswith("**", index):
                parts.append(".*")
                index += 2
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            end = pattern.find("]", index + 1)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[index + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                index = end + 1
                continue
        elif char == "\\" and index + 1 < length:
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


class IgnoreRules:
    """Answer whether project paths are excluded from line counting.

    Built-in exclusions load first, then the project's ignore file, then any
    extra patterns. The last matching rule decides, so ``!pattern`` lines can
    re-include paths excluded earlier.
    """

    def __init__(
        self,
        root: Path,
        *,
        extra_patterns: Iterable[str] = (),
        use_ignore_file: bool = True,
    ) -> None:
        self.root = root.expanduser().resolve()
        self._rules: list[IgnoreRule] = []
        self.add_patterns(DEFAULT_PATTERNS)
        if use_ignore_file:
            self._load_ignore_file(self.root / IGNORE_FILENAME)
        self.add_patterns(extra_patterns)

    @property
    def rules(self) -> tuple[IgnoreRule, ...]:
        return tuple(self._rules)

    def add_patterns(self, patterns: Iterable[str]) -> None:
        for raw in patterns:
            rule = compile_rule(raw)
            if rule is not None:
                self._rules.append(rule)

    def relative(self, path: Path | str) -> str | None:
        """Return ``path`` relative to the root in POSIX form, or None when outside it.

        Relative inputs resolve against the root. Symlinks are only followed
        when the literal path falls outside the root.
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        candidate = Path(os.path.normpath(candidate))
        try:
            return candidate.relative_to(self.root).as_posix()
        except ValueError:
            pass
        try:
            return candidate.resolve().relative_to(self.root).as_posix()
        except ValueError:
            return None

    def locate(self, path: Path | str) -> Path | None:
        """Return the canonical absolute form of ``path`` under the root."""
        relative = self.relative(path)
        if relative is None:
            return None
        return self.root if relative == "." else self.root / relative

    def is_ignored(self, path: Path | str, *, is_dir: bool | None = None) -> bool:
        """Return True if ``path`` is excluded from scanning.

        Agrees with :meth:`iter_tracked_files`: a path is excluded when it is
        outside the root, when an ancestor directory is ignored or is a
        symlink (the walk descends into neither), or when it matches itself.
        A negation cannot re-include a path below an ignored directory.
        """
        relative = self.relative(path)
        if relative is None:
            return True
        if relative == ".":
            return False
        parts = relative.split("/")
        for depth in range(1, len(parts)):
            ancestor = "/".join(parts[:depth])
            if self._match(ancestor, True) or (self.root / ancestor).is_symlink():
                return True
        if is_dir is None:
            is_dir = (self.root / relative).is_dir()
        return self._match(relative, is_dir)

    def iter_tracked_files(self) -> Iterator[Path]:
        """Yield every non-ignored file under the root, pruning ignored directories."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            base = current.relative_to(self.root).as_posix()
            prefix = "" if base == "." else f"{base}/"
            dirnames[:] = sorted(
                name for name in dirnames if not self._match(f"{prefix}{name}", True)
            )
            for name in sorted(filenames):
                if not self._match(f"{prefix}{name}", False):
                    yield current / name

    def _match(self, relative: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.matches(relative, is_dir):
                ignored = not rule.negated
        return ignored

    def _load_ignore_file(self, path: Path) -> None:
        if not path.is_file():
            return
        try:
            lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as exc:
            LOGGER.warning("Could not read ignore file %s: %s", path, exc)
            return
        self.add_patterns(lines)


__all__ = ["DEFAULT_PATTERNS", "IGNORE_FILENAME", "IgnoreRule", "IgnoreRules", "compile_rule"]
