"""Key-value persistence interface shared by hook invocations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .models import GuardState, SessionStats

SESSION_STATS_KEY = "session-stats"
GUARD_STATE_KEY = "ccguard-state"


class Storage(ABC):
    """Durable store for JSON-serializable values.

    Each hook invocation is a fresh process, so anything that must survive
    between the pre- and post-operation events goes through a ``Storage``.
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored under ``key`` or ``None``."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable ``value`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every stored value."""

    def get_session_stats(self) -> SessionStats | None:
        data = self.get(SESSION_STATS_KEY)
        if not isinstance(data, dict):
            return None
        return SessionStats.model_validate(data)

    def save_session_stats(self, stats: SessionStats) -> None:
        self.set(SESSION_STATS_KEY, stats.model_dump(mode="json"))

    def get_guard_state(self) -> GuardState | None:
        data = self.get(GUARD_STATE_KEY)
        if not isinstance(data, dict):
            return None
        return GuardState.model_validate(data)

    def save_guard_state(self, state: GuardState) -> None:
        self.set(GUARD_STATE_KEY, state.model_dump(mode="json"))


__all__ = ["Storage", "SESSION_STATS_KEY", "GUARD_STATE_KEY"]
