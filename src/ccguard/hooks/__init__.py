"""Hook event handling for ccguard."""

from .commands import PromptCommandHandler
from .models import HookDecision, HookEvent, PreOperationRecord
from .processor import HookProcessor

__all__ = [
    "HookDecision",
    "HookEvent",
    "HookProcessor",
    "PreOperationRecord",
    "PromptCommandHandler",
]
