"""Snapshot subsystem errors."""


class SnapshotError(Exception):
    """Base exception for snapshot capture and comparison."""


class RevertError(SnapshotError):
    """Raised when a file cannot be restored to its pre-operation state."""
