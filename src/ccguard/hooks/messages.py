"""Human-readable decision texts."""

from __future__ import annotations

from datetime import datetime

from ccguard.snapshot.models import SnapshotSummary, ThresholdCheck
from ccguard.storage import SessionStats

NO_VALIDATION = "No validation required"
SESSION_INITIALIZED = "Session initialized"
PRE_APPROVED = "Operation approved - will validate after completion"
PRE_FAILED = "Pre-operation snapshot failed, but allowing operation"
NO_PRE_SNAPSHOT = "No pre-operation snapshot available"
POST_FAILED = "Post-operation validation failed, but changes were already applied"
PROCESSING_ERROR = "Error processing hook data. Please try again."

_SUGGESTIONS = """Suggestions:
  • Remove or refactor existing code before adding new features
  • Use MultiEdit to batch additions with removals
  • Consider if all new code is truly necessary
  • Look for opportunities to consolidate duplicate code"""


def signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def cumulative_exceeded(check: ThresholdCheck) -> str:
    return f"""Operation reverted: LOC threshold exceeded!

Session cumulative LOC status:
  • Session reference: {check.baseline} lines
  • Would be after operation: {check.current} lines
  • Change from reference: {signed(check.delta)} lines
  • Allowed cumulative change: +{check.allowed} lines
  • Exceeded by: {check.exceeded_by} lines

The changes have been reverted to maintain the LOC limit.

{_SUGGESTIONS}"""


def snapshot_exceeded(check: ThresholdCheck) -> str:
    return f"""Operation reverted: LOC threshold exceeded!

Baseline threshold: {check.baseline} lines
Current LOC: {check.current} lines
Allowed growth: +{check.allowed} lines
Exceeded by: {check.exceeded_by} lines

The changes have been reverted to maintain the LOC limit.
The baseline threshold was set by 'ccguard snapshot'.
To update the threshold, run 'ccguard snapshot' again."""


def revert_failed(check: ThresholdCheck, error: str | None) -> str:
    return f"""LOC threshold exceeded ({check.current} lines against reference {check.baseline}, allowed: +{check.allowed} lines).

Failed to revert: {error or 'unknown error'}

Please manually revert the changes."""


def soft_limit_exceeded(check: ThresholdCheck, operation_delta: int) -> str:
    return f"""Operation completed with warning.

⚠️  SOFT LIMIT EXCEEDED
  • This operation: {signed(operation_delta)} lines
  • Reference: {check.baseline} lines, now {check.current} lines
  • Allowed change: +{check.allowed} lines
  • Over the limit by: {check.exceeded_by} lines

RECOMMENDED ACTIONS:
  • Remove unused or duplicate code before adding more
  • Refactor recent additions to be more concise
  • Run 'ccguard status' to review session totals"""


def cumulative_approved(operation_delta: int, session_net: int) -> str:
    return f"""Operation completed successfully.

LOC change: {signed(operation_delta)} lines
Session total: {signed(session_net)} lines"""


def snapshot_approved(check: ThresholdCheck) -> str:
    return f"""Operation completed successfully.

Current LOC: {check.current} lines
Baseline threshold: {check.baseline} lines"""


def guard_enabled() -> str:
    return "CCGuard is now ENABLED. Net negative LOC enforcement is active."


def guard_disabled() -> str:
    return "CCGuard is now DISABLED. LOC changes will not be enforced."


def stats_reset() -> str:
    return "Session statistics have been reset."


def status(enabled: bool, stats: SessionStats | None) -> str:
    message = "CCGuard is ENABLED\n\n" if enabled else "CCGuard is DISABLED\n\n"
    if stats is None:
        return message + "No operations tracked yet in this session."
    return message + (
        "Session Statistics:\n"
        f"   Lines added: {stats.total_lines_added}\n"
        f"   Lines removed: {stats.total_lines_removed}\n"
        f"   Net change: {signed(stats.net_change)}\n"
        f"   Operations: {stats.operation_count}"
    )


def snapshot_taken(summary: SnapshotSummary) -> str:
    return f"""Snapshot taken successfully!

Project baseline updated:
  • Total lines of code: {summary.total_line_count}
  • Files tracked: {summary.file_count}
  • Timestamp: {_format_time(summary.timestamp)}

This is now your new baseline for LOC enforcement."""


def snapshot_failed(error: Exception) -> str:
    return f"Failed to take snapshot: {error}"


def _format_time(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
