"""
Intent Classification

Maps a request to one of the closed IntentType labels. The primary path
asks a small model for exactly one label; the fallback is a deterministic,
ordered keyword cascade.

Intent types:
- CREATE_NEW: Build something new (page, game, feature)
- EDIT_EXISTING: Change, fix or restyle existing content
- READ_ONLY: Look at, list, find or ask about something (incl. commit history)
- COMMIT: Commit, push or deploy changes
- CONVERSATION: Chat that needs no file operations
"""

import re
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ai import classify_label
from config import (
    CLASSIFIER_SYSTEM_PROMPT,
    CLASSIFIER_TIMEOUT,
    CLASSIFIER_MAX_OUTPUT_TOKENS,
    CLASSIFIER_MODEL_ENABLED,
    build_classifier_prompt,
)
from .models import IntentType

logger = logging.getLogger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

METHOD_MODEL = "model"
METHOD_FALLBACK = "fallback"

MODEL_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.6


@dataclass(frozen=True)
class ClassificationResult:
    """
    Result of intent classification.

    Attributes:
        type: The classified intent
        confidence: Confidence score (0.0 - 1.0)
        method: "model" when the model produced a valid label, else "fallback"
        reasoning: Short explanation of the decision
    """
    type: IntentType
    confidence: float
    method: str
    reasoning: str = ""


# ============================================================================
# FALLBACK RULES
# ============================================================================

_READ_ONLY_START = re.compile(
    r"^\s*(?:(?:please|can you|could you|would you)\s+)?"
    r"(?:list|show|display|find|search|get|fetch|what|which|read|view|check|tell me|give me)\b",
    re.IGNORECASE,
)
_READ_ONLY_PHRASE = re.compile(
    r"\b(?:what\s+(?:is|are|was|were)|what's|tell me|show me|give me)\b",
    re.IGNORECASE,
)
_COMMIT_ACTION = re.compile(r"\b(?:commit|push|deploy)\b", re.IGNORECASE)
_SAVE_AND_PUSH = re.compile(r"\bsave\b.*\b(?:push|commit)", re.IGNORECASE)
_CREATE_KEYWORD = re.compile(r"\b(?:create|build|make|generate|produce|new)\b", re.IGNORECASE)
_EDIT_VERB = re.compile(
    r"\b(?:edit|update|change|modify|fix|replace|tweak|adjust|restyle|rename|remove|improve)\b",
    re.IGNORECASE,
)
_NAMED_RESOURCE = re.compile(r"\b\w[\w-]*\.(?:html|js|css)\b", re.IGNORECASE)
_NEGATIVE_SENTIMENT = re.compile(
    r"\b(?:broken|bad|wrong|sucks|buggy|not working|doesn't work|isn't working)\b",
    re.IGNORECASE,
)


def _is_read_only_query(text: str) -> bool:
    return bool(_READ_ONLY_START.search(text) or _READ_ONLY_PHRASE.search(text))


def _is_commit_action(text: str) -> bool:
    return bool(_COMMIT_ACTION.search(text) or _SAVE_AND_PUSH.search(text))


def _is_creation(text: str) -> bool:
    return bool(_CREATE_KEYWORD.search(text))


def _is_edit(text: str) -> bool:
    return bool(
        _EDIT_VERB.search(text)
        or _NAMED_RESOURCE.search(text)
        or _NEGATIVE_SENTIMENT.search(text)
    )


# Evaluated in order, first match wins. Read-only detection must stay ahead
# of commit detection: "show commit history" is a query, not a commit.
FALLBACK_RULES: List[Tuple[Callable[[str], bool], IntentType, str]] = [
    (_is_read_only_query, IntentType.READ_ONLY, "Read-only query phrasing"),
    (_is_commit_action, IntentType.COMMIT, "Explicit commit/push/deploy action"),
    (_is_creation, IntentType.CREATE_NEW, "Creation keyword"),
    (_is_edit, IntentType.EDIT_EXISTING, "Edit verb, named file or complaint about existing content"),
]


# ============================================================================
# CLASSIFICATION
# ============================================================================

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="classifier")


def classify(text: str, timeout: Optional[float] = None, use_model: Optional[bool] = None) -> ClassificationResult:
    """
    Classify a request into one of the IntentType labels.

    Never raises: timeouts, transport errors and invalid labels all fall
    through to `fallback_classification`.

    Args:
        text: The user's message
        timeout: Hard deadline for the model call (defaults to CLASSIFIER_TIMEOUT)
        use_model: Force the model path on/off (defaults to configuration)

    Returns:
        ClassificationResult

    Example:
        >>> classify("show commit history", use_model=False).type
        <IntentType.READ_ONLY: 'READ_ONLY'>
    """
    if use_model is None:
        use_model = CLASSIFIER_MODEL_ENABLED

    if use_model:
        intent = _classify_with_model(text, CLASSIFIER_TIMEOUT if timeout is None else timeout)
        if intent is not None:
            logger.info(f"🧭 Intent classified: {intent.value} (method: model)")
            return ClassificationResult(
                type=intent,
                confidence=MODEL_CONFIDENCE,
                method=METHOD_MODEL,
                reasoning="Model returned a valid label",
            )

    return fallback_classification(text)


def _classify_with_model(text: str, timeout: float) -> Optional[IntentType]:
    """Run the model call under a hard deadline; None means use the fallback."""
    future = _executor.submit(
        classify_label,
        build_classifier_prompt(text),
        system_instruction=CLASSIFIER_SYSTEM_PROMPT,
        max_tokens=CLASSIFIER_MAX_OUTPUT_TOKENS,
        timeout=timeout,
    )

    try:
        raw = future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning(f"⏱️  Classification timed out after {timeout}s; using fallback")
        return None
    except Exception as e:
        logger.warning(f"⚠️  Classification call failed: {e}; using fallback")
        return None

    return parse_label(raw)


def parse_label(raw: Optional[str]) -> Optional[IntentType]:
    """
    Validate a raw model answer against the closed label set.

    Truncated or out-of-enum answers return None; they are never passed
    through.
    """
    if not raw:
        return None

    label = raw.strip().strip("*`'\".: \n").upper()
    try:
        return IntentType(label)
    except ValueError:
        logger.warning(f"Invalid classification received: {raw!r}")
        return None


def fallback_classification(text: str) -> ClassificationResult:
    """
    Deterministic keyword classification.

    Pure: the same text always yields the same result.

    Args:
        text: The user's message

    Returns:
        ClassificationResult with method "fallback"
    """
    message = text or ""

    for predicate, intent, reasoning in FALLBACK_RULES:
        if predicate(message):
            break
    else:
        intent, reasoning = IntentType.CONVERSATION, "No actionable keywords"

    logger.debug(f"Fallback classification: {intent.value} ({reasoning})")

    return ClassificationResult(
        type=intent,
        confidence=FALLBACK_CONFIDENCE,
        method=METHOD_FALLBACK,
        reasoning=reasoning,
    )


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_intent_description(intent: IntentType) -> str:
    """
    Get a human-readable description of an intent type.

    Args:
        intent: The intent type

    Returns:
        Description string
    """
    descriptions = {
        IntentType.CREATE_NEW: "Creating something new",
        IntentType.EDIT_EXISTING: "Changing existing content",
        IntentType.READ_ONLY: "Looking something up",
        IntentType.COMMIT: "Committing changes",
        IntentType.CONVERSATION: "Having a conversation",
    }
    return descriptions.get(intent, "Processing your message")
