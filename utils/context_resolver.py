"""
Anaphoric reference resolution.

Resolves follow-ups such as "give it that vibe" or "fix the page" to the most
recently produced or edited file, so users don't have to restate filenames.
"""

import re
from typing import TYPE_CHECKING, Dict, Optional, Pattern

if TYPE_CHECKING:
    from core.models import Context


ANAPHOR_PATTERN = re.compile(r"\b(it|that|this|the\s+(?:page|game))\b", re.IGNORECASE)

# Follow-up action taxonomy; insertion order is the reporting order
FOLLOW_UP_VERBS: Dict[str, Pattern] = {
    "repair": re.compile(r"\b(fix\w*|broken|bug\w*|debug\w*|patch\w*|error\w*)\b", re.IGNORECASE),
    "enhancement": re.compile(
        r"\b(vibe\w*|styl\w*|theme\w*|darker|lighter|add|turn\s+(?:it\s+|that\s+|this\s+)?into)\b",
        re.IGNORECASE,
    ),
    "refinement": re.compile(
        r"\b(improve\w*|polish\w*|tweak\w*|simplif\w*|clean\w*|optimi[sz]e\w*)\b",
        re.IGNORECASE,
    ),
    "resize": re.compile(r"\b(bigger|smaller|resiz\w*|expand\w*|shrink\w*)\b", re.IGNORECASE),
    "removal": re.compile(r"\b(remov\w*|hide|hiding|trim\w*|delet\w*)\b", re.IGNORECASE),
    "movement": re.compile(r"\b(cent(?:er|re)\w*|mov(?:e|es|ed|ing)|align\w*|swap\w*)\b", re.IGNORECASE),
}


def has_anaphor(text: str) -> bool:
    """True when the message points at something instead of naming it."""
    return bool(text) and ANAPHOR_PATTERN.search(text) is not None


def detect_follow_up(text: str) -> Optional[str]:
    """
    Return the follow-up category ("repair", "enhancement", ...) of an
    anaphoric message, or None when the message is not a follow-up.
    """
    if not has_anaphor(text):
        return None

    for category, pattern in FOLLOW_UP_VERBS.items():
        if pattern.search(text):
            return category
    return None


def resolve_anaphor(text: str, context: Optional["Context"]) -> Optional[str]:
    """
    Resolve "it"/"that"/"the page" to the most recent file in context.

    Args:
        text: Raw user message
        context: Session context; only `recent_files` is read

    Returns:
        Most recent file path when the message is an anaphoric follow-up
        and the session has recent files, otherwise None

    Example:
        >>> resolve_anaphor("give it that noir arcade vibe", Context(recent_files=("src/x.html",)))
        'src/x.html'
    """
    if context is None or not context.recent_files:
        return None

    if detect_follow_up(text) is None:
        return None

    return context.recent_files[0]
