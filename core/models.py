"""
Request-level data structures shared by the classifier, router and
orchestrator.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# ============================================================================
# INTENT TYPES
# ============================================================================

class IntentType(Enum):
    """Closed set of request intents."""

    CREATE_NEW = "CREATE_NEW"
    EDIT_EXISTING = "EDIT_EXISTING"
    READ_ONLY = "READ_ONLY"
    COMMIT = "COMMIT"
    CONVERSATION = "CONVERSATION"

    @property
    def is_mutating(self) -> bool:
        return self in MUTATING_INTENTS


MUTATING_INTENTS = frozenset({
    IntentType.CREATE_NEW,
    IntentType.EDIT_EXISTING,
    IntentType.COMMIT,
})


# ============================================================================
# REQUEST
# ============================================================================

@dataclass(frozen=True)
class Context:
    """
    Session hints for a request. Owned by the calling session; the
    router only reads it.

    Attributes:
        recent_files: Recently produced/edited files, most recent first
        available_files: Files currently in the canonical folder
        action_summary: Short description of the bot's recent actions
        conversation_summary: Short summary of the recent conversation
    """
    recent_files: Tuple[str, ...] = ()
    available_files: Tuple[str, ...] = ()
    action_summary: Optional[str] = None
    conversation_summary: Optional[str] = None


@dataclass(frozen=True)
class Request:
    """A user request, immutable once received."""
    text: str
    requester_id: Optional[str] = None
    channel_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    context: Context = field(default_factory=Context)
