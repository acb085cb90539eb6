"""In-process storage used by tests and dry runs."""

from __future__ import annotations

import json
from typing import Any

from .base import Storage


class MemoryStorage(Storage):
    """Keep values in a dictionary, round-tripping through JSON like ``FileStorage``."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear_all(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return sorted(self._data)


__all__ = ["MemoryStorage"]
