"""Content-addressed storage of pre-operation file bytes."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable

from .models import FileRecord

LOGGER = logging.getLogger(__name__)


def digest(data: bytes) -> str:
    """Return the SHA-256 hex digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


class ContentStore:
    """Keep file contents keyed by their digest so reverts can be byte-exact."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory.expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def put(self, data: bytes) -> str:
        """Store ``data`` and return its digest. Existing blobs are left untouched."""
        key = digest(data)
        target = self._blob_path(key)
        if target.exists():
            return key
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(temp_name, target)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return key

    def get(self, key: str) -> bytes | None:
        path = self._blob_path(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        if digest(data) != key:
            LOGGER.warning("Discarding corrupt content blob %s", key)
            path.unlink(missing_ok=True)
            return None
        return data

    def has(self, key: str) -> bool:
        return self._blob_path(key).is_file()

    def capture(
        self,
        records: Iterable[FileRecord],
        reader: Callable[[str], bytes | None],
    ) -> set[str]:
        """Store the bytes behind ``records`` and return the digests now held.

        A file that changed since it was scanned is skipped; its blob would not
        match the record and could never be used for a restore.
        """
        held: set[str] = set()
        for record in records:
            if self.has(record.content_hash):
                held.add(record.content_hash)
                continue
            data = reader(record.path)
            if data is None or digest(data) != record.content_hash:
                LOGGER.debug("Content of %s changed before capture; skipping", record.path)
                continue
            try:
                held.add(self.put(data))
            except OSError as exc:
                LOGGER.debug("Could not capture %s: %s", record.path, exc)
        return held

    def retain(self, keys: Iterable[str]) -> int:
        """Delete every blob not in ``keys`` and return how many were removed."""
        keep = set(keys)
        if not self._directory.is_dir():
            return 0
        removed = 0
        for entry in self._directory.iterdir():
            if entry.name in keep or not entry.is_file():
                continue
            try:
                entry.unlink()
                removed += 1
            except OSError as exc:
                LOGGER.debug("Could not prune blob %s: %s", entry, exc)
        return removed

    def _blob_path(self, key: str) -> Path:
        return self._directory / key


__all__ = ["ContentStore", "digest"]
