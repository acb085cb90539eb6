"""Persisted session records."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStats(BaseModel):
    """Running totals of measured changes approved during a session."""

    total_lines_added: int = 0
    total_lines_removed: int = 0
    net_change: int = 0
    operation_count: int = 0
    last_updated: datetime = Field(default_factory=_now)

    def record(self, lines_added: int, lines_removed: int) -> "SessionStats":
        """Return new stats with one more operation folded in."""
        added = self.total_lines_added + lines_added
        removed = self.total_lines_removed + lines_removed
        return SessionStats(
            total_lines_added=added,
            total_lines_removed=removed,
            net_change=added - removed,
            operation_count=self.operation_count + 1,
        )


class GuardState(BaseModel):
    """Whether enforcement is active for a session."""

    enabled: bool
    last_updated: datetime = Field(default_factory=_now)


__all__ = ["SessionStats", "GuardState"]
