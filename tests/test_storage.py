"""Tests for session state persistence."""

from pathlib import Path

import pytest

from ccguard.storage import (
    FileStorage,
    GuardState,
    InvalidKeyError,
    MemoryStorage,
    SessionStats,
    StorageError,
    sanitize_key,
)


def test_file_storage_round_trips_json_documents(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)
    value = {"total_line_count": 12, "paths": ["a.py", "b.py"], "nested": {"ok": True}}

    storage.set("snapshot:current:abc", value)

    assert storage.get("snapshot:current:abc") == value
    assert (tmp_path / "snapshot__current__abc.json").exists()
    assert not list(tmp_path.glob(".tmp-*"))


def test_file_storage_isolates_sessions(tmp_path: Path) -> None:
    first = FileStorage(tmp_path, "session-1")
    second = FileStorage(tmp_path, "session-2")

    first.set("session-stats", {"net_change": 3})

    assert second.get("session-stats") is None
    assert first.data_dir == tmp_path / "session-1"
    assert first.base_dir == tmp_path


def test_missing_and_corrupt_documents_read_as_none(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    assert storage.get("absent") is None
    assert storage.get("broken") is None


def test_delete_and_clear_all(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path, "s")
    storage.set("one", 1)
    storage.set("two", 2)

    storage.delete("one")
    storage.delete("one")
    assert storage.get("one") is None
    assert storage.get("two") == 2

    storage.clear_all()
    assert storage.get("two") is None
    assert not storage.data_dir.exists()


def test_unserializable_value_raises_storage_error(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)

    with pytest.raises(StorageError):
        storage.set("bad", {"value": object()})

    assert storage.get("bad") is None


@pytest.mark.parametrize("key", ["", "k" * 256])
def test_invalid_keys_are_rejected(tmp_path: Path, key: str) -> None:
    with pytest.raises(InvalidKeyError):
        FileStorage(tmp_path).set(key, 1)


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("snapshot:pre:abc:latest", "snapshot:pre:abc:latest"),
        ("../escape", "k__escape"),
        ("with space/and.dot", "with_space_and_dot"),
    ],
)
def test_sanitize_key(key: str, expected: str) -> None:
    assert sanitize_key(key) == expected


def test_stats_and_guard_state_helpers() -> None:
    storage = MemoryStorage()
    assert storage.get_session_stats() is None
    assert storage.get_guard_state() is None

    stats = SessionStats().record(10, 3).record(1, 4)
    storage.save_session_stats(stats)
    storage.save_guard_state(GuardState(enabled=False))

    loaded = storage.get_session_stats()
    assert loaded is not None
    assert (loaded.total_lines_added, loaded.total_lines_removed) == (11, 7)
    assert loaded.net_change == 4
    assert loaded.operation_count == 2
    state = storage.get_guard_state()
    assert state is not None and state.enabled is False


def test_memory_storage_returns_copies() -> None:
    storage = MemoryStorage()
    value = {"items": [1, 2]}
    storage.set("key", value)

    value["items"].append(3)
    fetched = storage.get("key")
    fetched["items"].append(4)

    assert storage.get("key") == {"items": [1, 2]}
    assert storage.keys() == ["key"]
