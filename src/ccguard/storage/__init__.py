"""Session state persistence for ccguard."""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any

from .base import GUARD_STATE_KEY, SESSION_STATS_KEY, Storage
from .errors import InvalidKeyError, StorageError
from .memory import MemoryStorage
from .models import GuardState, SessionStats

LOGGER = logging.getLogger(__name__)

DEFAULT_STATE_DIR = Path("~/.ccguard")
MAX_KEY_LENGTH = 255
_VALID_KEY = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_:-]*$")


class FileStorage(Storage):
    """Persist each key as a JSON document inside a per-session directory."""

    def __init__(self, base_dir: Path | None = None, session_id: str | None = None) -> None:
        """Initialize the storage rooted at ``base_dir``.

        Args:
            base_dir: Root directory for ccguard state. Defaults to ``~/.ccguard``.
            session_id: Optional session identifier; isolates state in a subdirectory.
        """
        root = (base_dir or DEFAULT_STATE_DIR).expanduser()
        self._base_dir = root
        self._data_dir = root / sanitize_key(session_id).replace(":", "_") if session_id else root

    @property
    def base_dir(self) -> Path:
        """Return the root ccguard state directory."""
        return self._base_dir

    @property
    def data_dir(self) -> Path:
        """Return the directory holding this storage's documents."""
        return self._data_dir

    def get(self, key: str) -> Any:
        path = self._key_path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.debug("Ignoring unreadable storage document %s: %s", path, exc)
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._key_path(key)
        try:
            payload = json.dumps(value, indent=2)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Value for {key!r} is not JSON serializable: {exc}") from exc
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=self._data_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, path)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._key_path(key).unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.debug("Failed to delete storage key %s: %s", key, exc)

    def clear_all(self) -> None:
        shutil.rmtree(self._data_dir, ignore_errors=True)

    def _key_path(self, key: str) -> Path:
        filename = sanitize_key(key).replace(":", "__")
        return self._data_dir / f"{filename}.json"


def sanitize_key(key: str) -> str:
    """Return a filesystem-safe form of ``key``.

    Raises:
        InvalidKeyError: If the key is empty or longer than ``MAX_KEY_LENGTH``.
    """
    if not key:
        raise InvalidKeyError("Storage key must not be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidKeyError(
            f"Storage key too long: {len(key)} characters (max: {MAX_KEY_LENGTH})"
        )
    if _VALID_KEY.match(key):
        return key
    safe = re.sub(r"[^a-zA-Z0-9_:-]", "_", key)
    if not safe[0].isalnum():
        safe = "k" + safe[1:]
    LOGGER.debug("Sanitized storage key %r to %r", key, safe)
    return safe


__all__ = [
    "Storage",
    "FileStorage",
    "MemoryStorage",
    "DEFAULT_STATE_DIR",
    "GUARD_STATE_KEY",
    "SESSION_STATS_KEY",
    "GuardState",
    "SessionStats",
    "StorageError",
    "InvalidKeyError",
    "sanitize_key",
]
