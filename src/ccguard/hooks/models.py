"""Hook payloads and decisions exchanged with the assistant."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ccguard.snapshot.models import AffectedPaths, ProjectSnapshot

PRE_TOOL_USE = "PreToolUse"
POST_TOOL_USE = "PostToolUse"
USER_PROMPT_SUBMIT = "UserPromptSubmit"


class HookEvent(BaseModel):
    """Event delivered on stdin for every hook invocation.

    Unknown fields sent by newer assistant versions are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    session_id: str = Field(min_length=1)
    transcript_path: Optional[str] = None
    hook_event_name: str
    tool_name: Optional[str] = None
    tool_input: Dict[str, Any] = Field(default_factory=dict)
    prompt: Optional[str] = None


class HookDecision(BaseModel):
    """Answer written to stdout."""

    decision: Literal["approve", "block"]
    reason: str = ""

    @classmethod
    def approve(cls, reason: str = "") -> "HookDecision":
        return cls(decision="approve", reason=reason)

    @classmethod
    def block(cls, reason: str) -> "HookDecision":
        return cls(decision="block", reason=reason)


class PreOperationRecord(BaseModel):
    """State captured before a tool runs, read back by the post-operation hook.

    ``existing`` lists the operation's known target paths that were on disk
    before it ran, whether or not the scan counted them.
    """

    snapshot: ProjectSnapshot
    affected: AffectedPaths
    existing: Tuple[str, ...] = ()
    tool_name: Optional[str] = None
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = [
    "HookDecision",
    "HookEvent",
    "POST_TOOL_USE",
    "PRE_TOOL_USE",
    "PreOperationRecord",
    "USER_PROMPT_SUBMIT",
]
