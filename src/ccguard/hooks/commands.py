"""Guard commands typed into the assistant's prompt."""

from __future__ import annotations

import logging
from typing import Callable

from ccguard.guard import GuardManager
from ccguard.snapshot.errors import SnapshotError
from ccguard.storage import StorageError

from . import messages
from .models import HookDecision

LOGGER = logging.getLogger(__name__)

COMMAND_PREFIX = "ccguard"


class PromptCommandHandler:
    """Answer ``ccguard <command>`` prompts without forwarding them to the model."""

    def __init__(self, guard: GuardManager) -> None:
        self.guard = guard
        self._commands: dict[str, Callable[[str], HookDecision]] = {
            "on": self._enable,
            "off": self._disable,
            "status": self._status,
            "reset": self._reset,
            "snapshot": self._snapshot,
        }

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._commands)

    def handle(self, prompt: str, session_id: str) -> HookDecision | None:
        """Run the command in ``prompt``; return None when it is not a guard command."""
        parts = prompt.strip().lower().split()
        if len(parts) != 2 or parts[0] != COMMAND_PREFIX:
            return None
        handler = self._commands.get(parts[1])
        if handler is None:
            return None
        LOGGER.debug("Handling prompt command %r for session %s", parts[1], session_id)
        return handler(session_id)

    def _enable(self, session_id: str) -> HookDecision:
        self.guard.enable()
        return HookDecision.block(messages.guard_enabled())

    def _disable(self, session_id: str) -> HookDecision:
        self.guard.disable()
        return HookDecision.block(messages.guard_disabled())

    def _status(self, session_id: str) -> HookDecision:
        return HookDecision.block(
            messages.status(self.guard.is_enabled(), self.guard.get_session_stats())
        )

    def _reset(self, session_id: str) -> HookDecision:
        self.guard.reset_stats()
        return HookDecision.block(messages.stats_reset())

    def _snapshot(self, session_id: str) -> HookDecision:
        try:
            summary = self.guard.take_snapshot(session_id)
        except (OSError, SnapshotError, StorageError) as exc:
            LOGGER.exception("Snapshot command failed")
            return HookDecision.block(messages.snapshot_failed(exc))
        return HookDecision.block(messages.snapshot_taken(summary))


__all__ = ["COMMAND_PREFIX", "PromptCommandHandler"]
