"""Threshold decisions."""

from __future__ import annotations

from enum import Enum

from .models import ThresholdCheck


class LimitPolicy(str, Enum):
    """What the caller does when a threshold is exceeded."""

    HARD = "hard"
    SOFT = "soft"


def is_exceeded(delta: int, allowed: int) -> bool:
    """Return True when ``delta`` is strictly greater than ``allowed``.

    Raises:
        ValueError: If ``allowed`` is negative.
    """
    if allowed < 0:
        raise ValueError(f"Allowed positive delta must be non-negative, got {allowed}")
    return delta > allowed


def evaluate(current: int, reference: int, allowed: int = 0) -> ThresholdCheck:
    delta = current - reference
    return ThresholdCheck(
        exceeded=is_exceeded(delta, allowed),
        current=current,
        baseline=reference,
        delta=delta,
        allowed=allowed,
    )


__all__ = ["LimitPolicy", "evaluate", "is_exceeded"]
