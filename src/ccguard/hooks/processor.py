"""Hook orchestration: snapshot before a tool runs, judge and revert after."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pydantic import ValidationError

from ccguard.guard import DEFAULT_SESSION_ID, GuardManager
from ccguard.snapshot import (
    ContentStore,
    KnownPaths,
    ProjectSnapshot,
    RevertEngine,
    SnapshotDiff,
    SnapshotStore,
    ThresholdCheck,
    UnknownPaths,
    evaluate,
)
from ccguard.snapshot.store import PRE_OPERATION_KEY
from ccguard.snapshot.threshold import LimitPolicy

from . import messages
from .commands import PromptCommandHandler
from .models import (
    POST_TOOL_USE,
    PRE_TOOL_USE,
    USER_PROMPT_SUBMIT,
    HookDecision,
    HookEvent,
    PreOperationRecord,
)

LOGGER = logging.getLogger(__name__)


class HookProcessor:
    """Turn raw hook payloads into approve/block decisions.

    Args:
        guard: Guard manager carrying storage, configuration and project root.
        content_store: Blob store for pre-operation bytes. When omitted,
            reverts rely on git and deletion only.
        revert_engine: Engine used to undo rejected operations.
    """

    def __init__(
        self,
        guard: GuardManager,
        *,
        content_store: ContentStore | None = None,
        revert_engine: RevertEngine | None = None,
    ) -> None:
        self.guard = guard
        self.config = guard.config
        self.storage = guard.storage
        self.commands = PromptCommandHandler(guard)
        self.content_store = content_store if self.config.revert.capture_content else None
        self.revert_engine = revert_engine or RevertEngine(
            guard.root,
            content_store=self.content_store,
            use_git=self.config.revert.use_git,
        )

    @property
    def store(self) -> SnapshotStore:
        return self.guard.snapshot_store()

    def process_event(self, raw: str) -> HookDecision:
        """Process one hook payload and return the decision to print."""
        try:
            return self._dispatch(raw)
        except Exception:  # pragma: no cover - last-resort guard for the hook contract
            LOGGER.exception("Error processing hook data")
            return HookDecision.block(messages.PROCESSING_ERROR)

    def _dispatch(self, raw: str) -> HookDecision:
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.debug("Ignoring malformed hook payload")
            return HookDecision.approve(messages.NO_VALIDATION)
        if not isinstance(data, dict):
            return HookDecision.approve(messages.NO_VALIDATION)

        command = self._handle_command(data)
        if command is not None:
            return command

        if not self.guard.is_enabled():
            return HookDecision.approve()

        try:
            event = HookEvent.model_validate(data)
        except ValidationError as exc:
            LOGGER.debug("Hook payload failed validation: %s", exc)
            return HookDecision.approve(messages.NO_VALIDATION)

        if event.hook_event_name == USER_PROMPT_SUBMIT:
            self.store.get_baseline(event.session_id)
            return HookDecision.approve(messages.SESSION_INITIALIZED)
        if event.hook_event_name == PRE_TOOL_USE:
            return self._pre_tool_use(event)
        if event.hook_event_name == POST_TOOL_USE:
            return self._post_tool_use(event)
        return HookDecision.approve(messages.NO_VALIDATION)

    def _handle_command(self, data: dict[str, Any]) -> HookDecision | None:
        if data.get("hook_event_name") != USER_PROMPT_SUBMIT:
            return None
        prompt = data.get("prompt")
        if not isinstance(prompt, str):
            return None
        session_id = data.get("session_id")
        if not isinstance(session_id, str) or not session_id:
            session_id = DEFAULT_SESSION_ID
        return self.commands.handle(prompt, session_id)

    # PRE ---------------------------------------------------------------

    def _pre_tool_use(self, event: HookEvent) -> HookDecision:
        try:
            store = self.store
            store.get_baseline(event.session_id)
            affected = store.scanner.affected_paths(event)
            snapshot = store.take_pre_operation_snapshot(event.session_id, affected)
            self._capture_content(snapshot, affected)
            record = PreOperationRecord(
                snapshot=snapshot,
                affected=affected,
                existing=_existing_paths(affected),
                tool_name=event.tool_name,
            )
            self.storage.set(
                PRE_OPERATION_KEY.format(session=event.session_id),
                record.model_dump(mode="json"),
            )
        except Exception:  # pragma: no cover - a failed snapshot must not block the tool
            LOGGER.exception("Pre-operation snapshot failed")
            return HookDecision.approve(messages.PRE_FAILED)
        return HookDecision.approve(messages.PRE_APPROVED)

    def _capture_content(self, snapshot: ProjectSnapshot, affected: KnownPaths | UnknownPaths) -> None:
        if self.content_store is None:
            return
        if isinstance(affected, KnownPaths) and affected.paths:
            records = [snapshot.files[path] for path in affected.paths if path in snapshot.files]
        else:
            records = list(snapshot.files.values())
        held = self.content_store.capture(records, self.store.scanner.read_bytes)
        self.content_store.retain(held)

    # POST --------------------------------------------------------------

    def _post_tool_use(self, event: HookEvent) -> HookDecision:
        key = PRE_OPERATION_KEY.format(session=event.session_id)
        pre = self._load_pre_record(key)
        if pre is None:
            return HookDecision.approve(messages.NO_PRE_SNAPSHOT)
        try:
            return self._judge(event, pre)
        except Exception:  # pragma: no cover - changes already landed; never block after the fact
            LOGGER.exception("Post-operation validation failed")
            return HookDecision.approve(messages.POST_FAILED)
        finally:
            self.storage.delete(key)

    def _load_pre_record(self, key: str) -> PreOperationRecord | None:
        data = self.storage.get(key)
        if not isinstance(data, dict):
            return None
        try:
            return PreOperationRecord.model_validate(data)
        except ValidationError as exc:
            LOGGER.warning("Discarding unreadable pre-operation record: %s", exc)
            return None

    def _judge(self, event: HookEvent, pre: PreOperationRecord) -> HookDecision:
        store = self.store
        session_id = event.session_id
        post = store.take_post_operation_snapshot(session_id, pre.affected, base=pre.snapshot)
        diff = store.compare_snapshots(pre.snapshot, post)
        allowance = self.config.thresholds.allowed_positive_lines
        snapshot_mode = self.guard.is_snapshot_mode()

        check = self._evaluate(session_id, pre.snapshot, post, diff, allowance, snapshot_mode)
        LOGGER.info(
            "Session %s: %s changed %d file(s), delta %+d, exceeded=%s",
            session_id,
            event.tool_name,
            len(diff.per_file),
            diff.total_delta,
            check.exceeded,
        )

        if check.exceeded and LimitPolicy(self.config.enforcement.limit_type) is LimitPolicy.HARD:
            return self._reject(pre, diff, check, snapshot_mode)

        store.update_last_valid_snapshot(post)
        stats = self.guard.update_session_stats(diff.lines_added, diff.lines_removed)
        if check.exceeded:
            return HookDecision.approve(messages.soft_limit_exceeded(check, diff.total_delta))
        if snapshot_mode:
            return HookDecision.approve(messages.snapshot_approved(check))
        return HookDecision.approve(messages.cumulative_approved(diff.total_delta, stats.net_change))

    def _evaluate(
        self,
        session_id: str,
        pre: ProjectSnapshot,
        post: ProjectSnapshot,
        diff: SnapshotDiff,
        allowance: int,
        snapshot_mode: bool,
    ) -> ThresholdCheck:
        store = self.store
        if snapshot_mode:
            return store.check_snapshot_threshold(session_id, post.total_line_count, allowance)
        if self.config.enforcement.mode == "per-operation":
            return store.check_threshold(session_id, post, allowance)
        # Session-wide: the reference is the project total when the session's
        # approved changes began, so delta equals the projected session net.
        stats = self.guard.get_session_stats()
        approved_net = stats.net_change if stats is not None else 0
        return evaluate(post.total_line_count, pre.total_line_count - approved_net, allowance)

    def _reject(
        self,
        pre: PreOperationRecord,
        diff: SnapshotDiff,
        check: ThresholdCheck,
        snapshot_mode: bool,
    ) -> HookDecision:
        scanner = self.store.scanner
        paths = set(diff.changed_paths)
        if isinstance(pre.affected, KnownPaths):
            paths.update(path for path in pre.affected.paths if scanner.is_countable(path))
        result = self.revert_engine.revert_to_snapshot(
            sorted(paths), pre.snapshot, keep=pre.existing
        )
        if not result.success:
            return HookDecision.block(messages.revert_failed(check, result.error))
        if snapshot_mode:
            return HookDecision.block(messages.snapshot_exceeded(check))
        return HookDecision.block(messages.cumulative_exceeded(check))


def _existing_paths(affected: KnownPaths | UnknownPaths) -> tuple[str, ...]:
    if not isinstance(affected, KnownPaths):
        return ()
    return tuple(path for path in affected.paths if os.path.lexists(path))


__all__ = ["HookProcessor"]
