"""Tests for snapshot comparison."""

import random

from ccguard.snapshot.differ import compare_snapshots
from ccguard.snapshot.models import FileRecord, ProjectSnapshot


def _record(path: str, lines: int, content_hash: str | None = None, mtime: float = 0.0) -> FileRecord:
    return FileRecord(
        path=path,
        line_count=lines,
        content_hash=content_hash or f"{path}:{lines}",
        last_modified=mtime,
    )


def _snapshot(*records: FileRecord) -> ProjectSnapshot:
    return ProjectSnapshot(session_id="s", files={record.path: record for record in records})


def test_classifies_added_removed_and_modified() -> None:
    before = _snapshot(_record("/a", 5), _record("/b", 3), _record("/c", 2))
    after = _snapshot(_record("/a", 5), _record("/b", 7), _record("/d", 4))

    diff = compare_snapshots(before, after)

    assert diff.added == ("/d",)
    assert diff.removed == ("/c",)
    assert diff.modified == ("/b",)
    assert diff.total_delta == 6
    assert diff.per_file["/b"].before == 3
    assert diff.per_file["/b"].after == 7
    assert diff.per_file["/c"].delta == -2
    assert diff.lines_added == 8
    assert diff.lines_removed == 2


def test_touch_without_edit_is_not_reported() -> None:
    before = _snapshot(_record("/a", 5, "same", mtime=1.0))
    after = _snapshot(_record("/a", 5, "same", mtime=99.0))

    diff = compare_snapshots(before, after)

    assert diff.is_empty
    assert diff.total_delta == 0


def test_modified_with_same_line_count_has_zero_delta() -> None:
    diff = compare_snapshots(_snapshot(_record("/a", 4, "old")), _snapshot(_record("/a", 4, "new")))

    assert diff.modified == ("/a",)
    assert diff.per_file["/a"].delta == 0


def _random_pair(rng: random.Random) -> tuple[ProjectSnapshot, ProjectSnapshot]:
    before: list[FileRecord] = []
    after: list[FileRecord] = []
    for index in range(rng.randint(0, 12)):
        path = f"/repo/file{index}.py"
        old = _record(path, rng.randint(0, 50), f"h{rng.random()}") if rng.random() < 0.8 else None
        roll = rng.random()
        if old is not None and roll < 0.4:
            new = old
        elif roll < 0.8:
            new = _record(path, rng.randint(0, 50), f"h{rng.random()}")
        else:
            new = None
        if old is not None:
            before.append(old)
        if new is not None:
            after.append(new)
    return _snapshot(*before), _snapshot(*after)


def test_diff_properties_hold_for_random_snapshots() -> None:
    rng = random.Random(20240611)
    for _ in range(300):
        before, after = _random_pair(rng)
        diff = compare_snapshots(before, after)

        # additivity
        assert diff.total_delta == sum(entry.delta for entry in diff.per_file.values())

        # partition
        added, removed, modified = set(diff.added), set(diff.removed), set(diff.modified)
        assert not (added & removed or added & modified or removed & modified)
        changed = {
            path
            for path in set(before.files) | set(after.files)
            if path not in before.files
            or path not in after.files
            or before.files[path].content_hash != after.files[path].content_hash
        }
        assert added | removed | modified == changed == set(diff.per_file)

        # order independence and determinism
        shuffled = list(after.files.values())
        rng.shuffle(shuffled)
        assert compare_snapshots(before, _snapshot(*shuffled)) == diff

        # reversing the comparison mirrors it
        reverse = compare_snapshots(after, before)
        assert reverse.added == diff.removed
        assert reverse.removed == diff.added
        assert reverse.total_delta == -diff.total_delta
