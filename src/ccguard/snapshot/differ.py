"""Comparison of two project snapshots."""

from __future__ import annotations

from .models import FileDelta, ProjectSnapshot, SnapshotDiff


def compare_snapshots(before: ProjectSnapshot, after: ProjectSnapshot) -> SnapshotDiff:
    """Return the file-level differences between ``before`` and ``after``.

    A path whose content hash is unchanged is never reported, even if its
    modification time moved. ``total_delta`` is taken from the two aggregate
    totals rather than summed from ``per_file``.

    Args:
        before: Earlier snapshot.
        after: Later snapshot.

    Returns:
        SnapshotDiff: Added, removed and modified paths with their line deltas.
    """
    added: list[str] = []
    removed: list[str] = []
    modified: list[str] = []
    per_file: dict[str, FileDelta] = {}

    for path, old in before.files.items():
        new = after.files.get(path)
        if new is None:
            removed.append(path)
            per_file[path] = FileDelta(before=old.line_count, after=0, delta=-old.line_count)
        elif new.content_hash != old.content_hash:
            modified.append(path)
            per_file[path] = FileDelta(
                before=old.line_count,
                after=new.line_count,
                delta=new.line_count - old.line_count,
            )

    for path, new in after.files.items():
        if path not in before.files:
            added.append(path)
            per_file[path] = FileDelta(before=0, after=new.line_count, delta=new.line_count)

    return SnapshotDiff(
        added=tuple(sorted(added)),
        removed=tuple(sorted(removed)),
        modified=tuple(sorted(modified)),
        total_delta=after.total_line_count - before.total_line_count,
        per_file={path: per_file[path] for path in sorted(per_file)},
    )


__all__ = ["compare_snapshots"]
