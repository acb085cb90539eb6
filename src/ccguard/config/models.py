"""Configuration models describing ccguard settings."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class GuardBaseModel(BaseModel):
    """Shared configuration for ccguard settings models."""

    model_config = ConfigDict(extra="forbid")


class EnforcementSettings(GuardBaseModel):
    """How line-count changes are measured and enforced.

    Attributes:
        mode: Whether cumulative checks apply to the whole session or to each
            operation on its own.
        strategy: ``cumulative`` sums measured deltas across operations;
            ``snapshot`` compares the project total with a fixed checkpoint.
        ignore_empty_lines: Count only lines with non-whitespace content.
        limit_type: ``hard`` reverts offending operations, ``soft`` only warns.
    """

    mode: Literal["session-wide", "per-operation"] = "session-wide"
    strategy: Literal["cumulative", "snapshot"] = "cumulative"
    ignore_empty_lines: bool = True
    limit_type: Literal["hard", "soft"] = "hard"


class ThresholdSettings(GuardBaseModel):
    """Allowed growth before an operation is rejected.

    Attributes:
        allowed_positive_lines: Net lines that may be added before the limit trips.
    """

    allowed_positive_lines: int = Field(default=0, ge=0)


class ScanSettings(GuardBaseModel):
    """Project scanning options.

    Attributes:
        respect_gitignore: Layer the project's ``.gitignore`` over built-in exclusions.
        extra_ignore_patterns: Additional ignore patterns applied last.
    """

    respect_gitignore: bool = True
    extra_ignore_patterns: List[str] = Field(default_factory=list)


class RevertSettings(GuardBaseModel):
    """Options for restoring files after a rejected operation.

    Attributes:
        capture_content: Store pre-operation bytes so reverts are byte-exact.
        use_git: Fall back to ``git checkout`` for tracked files without stored content.
    """

    capture_content: bool = True
    use_git: bool = True


class GuardSettings(GuardBaseModel):
    """Guard activation defaults."""

    enabled_by_default: bool = True


class StorageSettings(GuardBaseModel):
    """Location of persisted session state."""

    state_dir: str = "~/.ccguard"


class LoggingSettings(GuardBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        debug: Force debug logging regardless of ``level``.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    debug: bool = False
    max_size_mb: int = 10
    backup_count: int = 3


class GuardConfig(GuardBaseModel):
    """Top-level configuration struct for ccguard."""

    enforcement: EnforcementSettings = Field(default_factory=EnforcementSettings)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    scan: ScanSettings = Field(default_factory=ScanSettings)
    revert: RevertSettings = Field(default_factory=RevertSettings)
    guard: GuardSettings = Field(default_factory=GuardSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "GuardBaseModel",
    "EnforcementSettings",
    "ThresholdSettings",
    "ScanSettings",
    "RevertSettings",
    "GuardSettings",
    "StorageSettings",
    "LoggingSettings",
    "GuardConfig",
]
