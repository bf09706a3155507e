"""
Routing Plan Builder

Turns a request into a Plan: which tools to run, in which order, with
which argument hints. A model-generated plan is used when available and
conclusive; otherwise the deterministic pattern cascade decides.

Cascade (first match wins):
1. Structural transformation ("make x.html follow the same design as y.html")
2. Edit with an explicit file
3. Create
4. Commit
5. Read / search / list
6. Freshness query (web search)
7. Anaphoric follow-up ("give it that vibe") overrides to an edit
8. Conversation
"""

import json
import re
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ai import generate_structured_output
from config import (
    CANONICAL_DIR,
    SITE_HOST,
    PLAN_SCHEMA,
    ROUTER_SYSTEM_PROMPT,
    ROUTER_MODEL,
    ROUTER_TIMEOUT,
    ROUTER_MAX_TOKENS,
    ROUTER_MIN_CONFIDENCE,
    ROUTER_MODEL_ENABLED,
    format_prompt,
)
from tools import (
    FILE_EXISTS,
    READ_FILE,
    WRITE_FILE,
    EDIT_FILE,
    LIST_FILES,
    SEARCH_FILES,
    WEB_SEARCH,
    GET_REPO_STATUS,
    COMMIT_CHANGES,
    ensure_prerequisites,
    is_mutating,
)
from utils.path_resolver import resolve_path, resolve_reference_path, extract_all_paths
from utils.context_resolver import resolve_anaphor, detect_follow_up
from .models import Context, IntentType

logger = logging.getLogger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

METHOD_MODEL = "model"
METHOD_PATTERN = "pattern"

DEFAULT_CONFIDENCE = 0.6
PATTERN_CONFIDENCE = 0.8


@dataclass(frozen=True)
class Plan:
    """
    Executable routing plan for one request.

    Attributes:
        intent: Primary intent
        tool_sequence: Ordered tool names to call
        parameter_hints: Suggested arguments per tool name
        context_needed: Context the tools will need (e.g. "file_content")
        confidence: Confidence score (0.0 - 1.0)
        reasoning: Why this routing was chosen
        clarify_first: Ask the user before running any tool
        clarify_question: Question to ask when clarify_first is set
        expected_iterations: Estimated tool iterations (>= len(tool_sequence))
        method: "model" or "pattern"
    """
    intent: IntentType
    tool_sequence: Tuple[str, ...] = ()
    parameter_hints: Dict[str, Any] = field(default_factory=dict)
    context_needed: Tuple[str, ...] = ()
    confidence: float = DEFAULT_CONFIDENCE
    reasoning: str = ""
    clarify_first: bool = False
    clarify_question: Optional[str] = None
    expected_iterations: int = 1
    method: str = METHOD_PATTERN

    def __post_init__(self):
        if self.intent == IntentType.CONVERSATION and self.tool_sequence:
            raise ValueError("Conversation plans cannot schedule tools")
        if self.expected_iterations < max(1, len(self.tool_sequence)):
            raise ValueError(
                f"expected_iterations={self.expected_iterations} is below "
                f"the {len(self.tool_sequence)} planned tool calls"
            )

    @property
    def target_path(self) -> Optional[str]:
        """Primary file the plan operates on, if any."""
        for tool in (FILE_EXISTS, EDIT_FILE, WRITE_FILE, READ_FILE):
            hints = self.parameter_hints.get(tool)
            if isinstance(hints, dict):
                if hints.get("path"):
                    return hints["path"]
                if hints.get("paths"):
                    return hints["paths"][0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the wire field names."""
        return {
            "intent": self.intent.value,
            "toolSequence": list(self.tool_sequence),
            "parameterHints": dict(self.parameter_hints),
            "contextNeeded": list(self.context_needed),
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "clarifyFirst": self.clarify_first,
            "clarifyQuestion": self.clarify_question,
            "expectedIterations": self.expected_iterations,
            "method": self.method,
        }


# ============================================================================
# PATTERN ROUTING
# ============================================================================

_STRUCTURAL = re.compile(
    r"\b(follow|match|same\s+(?:design|structure|format|layout)|like|similar\s+to)\b",
    re.IGNORECASE,
)
_EDIT = re.compile(r"\b(edit|change|replace|update|fix|modify)\b", re.IGNORECASE)
_CREATE = re.compile(r"\b(create|build|make|generate|new)\b", re.IGNORECASE)
_COMMIT = re.compile(r"\b(commit|push|save|deploy)\b", re.IGNORECASE)
_READ = re.compile(r"\b(list|show|find|search|what|read)\b", re.IGNORECASE)
_SEARCH_TERM = re.compile(r"\b(search|find|grep)\b", re.IGNORECASE)
_FRESHNESS = re.compile(r"\b(latest|current|recent|news|what\s+is|who\s+is)\b", re.IGNORECASE)


@dataclass(frozen=True)
class _Signals:
    """Everything the cascade looks at, extracted once per request."""
    text: str
    path: Optional[str]
    reference: Optional[str]
    anaphor_target: Optional[str]


def _edit_plan(path: str, reasoning: str) -> Plan:
    return Plan(
        intent=IntentType.EDIT_EXISTING,
        tool_sequence=(FILE_EXISTS, READ_FILE, EDIT_FILE),
        parameter_hints={
            FILE_EXISTS: {"path": path},
            READ_FILE: {"path": path},
            EDIT_FILE: {"path": path},
        },
        context_needed=("file_content",),
        confidence=PATTERN_CONFIDENCE,
        reasoning=reasoning,
        expected_iterations=3,
    )


def _structural_rule(signals: _Signals) -> Optional[Plan]:
    if not (signals.path and _STRUCTURAL.search(signals.text)):
        return None

    path, reference = signals.path, signals.reference
    if reference == path:
        reference = None

    if reference:
        return Plan(
            intent=IntentType.CREATE_NEW,
            tool_sequence=(FILE_EXISTS, READ_FILE, READ_FILE, WRITE_FILE),
            parameter_hints={
                FILE_EXISTS: {"path": path},
                READ_FILE: {"paths": [path, reference]},
                WRITE_FILE: {"path": path},
                "note": "Structural transformation - read both files, then write_file with the new structure",
            },
            context_needed=("file_content", "reference_content"),
            confidence=PATTERN_CONFIDENCE,
            reasoning=f"Structural transformation: {path} → match {reference}",
            expected_iterations=4,
        )

    return Plan(
        intent=IntentType.CREATE_NEW,
        tool_sequence=(FILE_EXISTS, READ_FILE, WRITE_FILE),
        parameter_hints={
            FILE_EXISTS: {"path": path},
            READ_FILE: {"paths": [path]},
            WRITE_FILE: {"path": path},
            "note": "Structural transformation - read file, then write_file with the new structure",
        },
        context_needed=("file_content",),
        confidence=PATTERN_CONFIDENCE,
        reasoning=f"Structural transformation: {path}",
        expected_iterations=3,
    )


def _edit_rule(signals: _Signals) -> Optional[Plan]:
    if not (signals.path and _EDIT.search(signals.text)):
        return None
    return _edit_plan(signals.path, f"Edit request with explicit path: {signals.path}")


def _create_rule(signals: _Signals) -> Optional[Plan]:
    if not _CREATE.search(signals.text):
        return None
    return Plan(
        intent=IntentType.CREATE_NEW,
        tool_sequence=(LIST_FILES, WRITE_FILE),
        parameter_hints={LIST_FILES: {"directory": CANONICAL_DIR}},
        confidence=PATTERN_CONFIDENCE,
        reasoning="Content creation request",
        expected_iterations=2,
    )


def _commit_rule(signals: _Signals) -> Optional[Plan]:
    if not _COMMIT.search(signals.text):
        return None
    return Plan(
        intent=IntentType.COMMIT,
        tool_sequence=(GET_REPO_STATUS, COMMIT_CHANGES),
        confidence=PATTERN_CONFIDENCE,
        reasoning="Git commit request",
        expected_iterations=2,
    )


def _read_rule(signals: _Signals) -> Optional[Plan]:
    if not _READ.search(signals.text):
        return None
    return _read_plan(signals)


def _read_plan(signals: _Signals) -> Plan:
    if signals.path:
        return Plan(
            intent=IntentType.READ_ONLY,
            tool_sequence=(FILE_EXISTS, READ_FILE),
            parameter_hints={
                FILE_EXISTS: {"path": signals.path},
                READ_FILE: {"path": signals.path},
            },
            confidence=PATTERN_CONFIDENCE,
            reasoning=f"Read request for {signals.path}",
            expected_iterations=2,
        )

    if _COMMIT.search(signals.text):
        return Plan(
            intent=IntentType.READ_ONLY,
            tool_sequence=(GET_REPO_STATUS,),
            confidence=PATTERN_CONFIDENCE,
            reasoning="Repository history query",
            expected_iterations=1,
        )

    if _SEARCH_TERM.search(signals.text):
        return Plan(
            intent=IntentType.READ_ONLY,
            tool_sequence=(SEARCH_FILES,),
            confidence=PATTERN_CONFIDENCE,
            reasoning="Search request across repository files",
            expected_iterations=1,
        )

    return Plan(
        intent=IntentType.READ_ONLY,
        tool_sequence=(LIST_FILES,),
        parameter_hints={LIST_FILES: {"directory": CANONICAL_DIR}},
        confidence=PATTERN_CONFIDENCE,
        reasoning="Listing request",
        expected_iterations=1,
    )


def _freshness_rule(signals: _Signals) -> Optional[Plan]:
    if signals.path or not _FRESHNESS.search(signals.text):
        return None
    return Plan(
        intent=IntentType.READ_ONLY,
        tool_sequence=(WEB_SEARCH,),
        parameter_hints={WEB_SEARCH: {"query": signals.text.strip()}},
        confidence=PATTERN_CONFIDENCE,
        reasoning="Web search for current information",
        expected_iterations=1,
    )


# Order is significant; see module docstring.
PATTERN_RULES: List[Callable[[_Signals], Optional[Plan]]] = [
    _structural_rule,
    _edit_rule,
    _create_rule,
    _commit_rule,
    _read_rule,
    _freshness_rule,
]


def _conversation_plan() -> Plan:
    return Plan(
        intent=IntentType.CONVERSATION,
        confidence=DEFAULT_CONFIDENCE,
        reasoning="General conversation, no specific tools needed",
    )


def _extract_signals(message: str, context: Optional[Context]) -> _Signals:
    path = resolve_path(message)
    reference = resolve_reference_path(message)

    # A qualified reference page outranks an informal target in resolve_path;
    # the target is then the other file the message names.
    if reference and path == reference:
        others = [p for p in extract_all_paths(message) if p != reference]
        if others:
            path = others[0]

    return _Signals(
        text=message,
        path=path,
        reference=reference,
        anaphor_target=resolve_anaphor(message, context),
    )


def pattern_route(text: str, context: Optional[Context] = None) -> Plan:
    """
    Deterministic routing cascade.

    Pure: the same (text, context) always yields the same plan.

    Args:
        text: The user's message
        context: Session context (recent files) for anaphoric follow-ups

    Returns:
        Plan with method "pattern"

    Example:
        >>> pattern_route("change the title in snake.html").tool_sequence
        ('file_exists', 'read_file', 'edit_file')
    """
    message = text or ""
    signals = _extract_signals(message, context)

    plan = next((p for p in (rule(signals) for rule in PATTERN_RULES) if p is not None), None)

    # A follow-up about a recent file wins over keyword routing when the
    # message names no file of its own ("make it darker" is not a create).
    if signals.anaphor_target and not signals.path:
        category = detect_follow_up(message)
        plan = _edit_plan(
            signals.anaphor_target,
            f"Follow-up ({category}) on recent file: {signals.anaphor_target}",
        )

    if plan is None:
        plan = _conversation_plan()

    logger.info(f"🧭 Pattern plan: {plan.intent.value} → [{'→'.join(plan.tool_sequence)}]")
    return plan


# ============================================================================
# MODEL ROUTING
# ============================================================================

# Wire intent names used by routing models
INTENT_ALIASES = {
    "edit": IntentType.EDIT_EXISTING,
    "create": IntentType.CREATE_NEW,
    "build": IntentType.CREATE_NEW,
    "read": IntentType.READ_ONLY,
    "search": IntentType.READ_ONLY,
    "commit": IntentType.COMMIT,
    "chat": IntentType.CONVERSATION,
}


def _parse_intent(value: Any) -> Optional[IntentType]:
    if not isinstance(value, str):
        return None
    key = value.strip()
    if key.lower() in INTENT_ALIASES:
        return INTENT_ALIASES[key.lower()]
    try:
        return IntentType(key.upper())
    except ValueError:
        return None


def _parse_hints(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring undecodable parameter hints: {value[:100]}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def validate_plan(raw: Dict[str, Any]) -> Optional[Plan]:
    """
    Validate and normalize a model-generated routing plan.

    Unknown tools are dropped, missing prerequisites inserted, confidence
    clamped to 0..1 and expected_iterations raised to the sequence length.

    Args:
        raw: Parsed JSON from the routing model

    Returns:
        Plan with method "model", or None when the intent is not recognized
    """
    intent = _parse_intent(raw.get("intent"))
    if intent is None:
        logger.warning(f"Routing model returned unknown intent: {raw.get('intent')!r}")
        return None

    sequence = raw.get("toolSequence")
    if not isinstance(sequence, list):
        sequence = []
    sequence = ensure_prerequisites([t for t in sequence if isinstance(t, str)])
    if intent == IntentType.CONVERSATION:
        sequence = []

    try:
        confidence = float(raw.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5
    confidence = max(0.0, min(1.0, confidence))

    try:
        iterations = int(raw.get("expectedIterations") or 1)
    except (TypeError, ValueError):
        iterations = 1

    context_needed = raw.get("contextNeeded")
    if not isinstance(context_needed, list):
        context_needed = []

    return Plan(
        intent=intent,
        tool_sequence=tuple(sequence),
        parameter_hints=_parse_hints(raw.get("parameterHints")),
        context_needed=tuple(str(c) for c in context_needed),
        confidence=confidence,
        reasoning=str(raw.get("reasoning") or "No reasoning provided"),
        clarify_first=bool(raw.get("clarifyFirst", False)),
        clarify_question=raw.get("clarifyQuestion") or None,
        expected_iterations=max(iterations, len(sequence), 1),
        method=METHOD_MODEL,
    )


def build_routing_prompt(text: str, context: Optional[Context] = None) -> str:
    """Build the routing model prompt from the request and session context."""
    prompt = f'USER REQUEST: "{text}"'

    if context is not None:
        if context.recent_files:
            prompt += (
                "\n\nRECENTLY CREATED/MODIFIED FILES (use these for \"it\", \"the page\", "
                f"\"isn't working\" references): {', '.join(context.recent_files)}"
            )
        if context.action_summary:
            prompt += f"\n\nRECENT BOT ACTIONS: {context.action_summary}"
        if context.available_files:
            shown = ", ".join(context.available_files[:20])
            more = "..." if len(context.available_files) > 20 else ""
            prompt += f"\n\nFILES IN {CANONICAL_DIR}/: {shown}{more}"
        if context.conversation_summary:
            prompt += f"\n\nCONVERSATION CONTEXT: {context.conversation_summary}"

    extracted = resolve_path(text)
    if extracted:
        prompt += f"\n\nEXTRACTED PATH: {extracted}"

    mentioned = extract_all_paths(text)
    if len(mentioned) > 1:
        prompt += f"\n\nALL REFERENCED FILES: {', '.join(mentioned)}"

    prompt += "\n\nGenerate routing plan JSON:"
    return prompt


def generate_routing_plan(text: str, context: Optional[Context] = None) -> Optional[Plan]:
    """
    Ask the routing model for a plan.

    Args:
        text: The user's message
        context: Session context

    Returns:
        Validated Plan, or None if the call failed or was inconclusive
    """
    try:
        raw = generate_structured_output(
            prompt=build_routing_prompt(text, context),
            schema=PLAN_SCHEMA,
            system_instruction=format_prompt(
                ROUTER_SYSTEM_PROMPT,
                site_host=SITE_HOST,
                canonical_dir=CANONICAL_DIR,
            ),
            temperature=0.1,
            max_tokens=ROUTER_MAX_TOKENS,
            model_name=ROUTER_MODEL,
            timeout=ROUTER_TIMEOUT,
        )
    except Exception as e:
        logger.error(f"❌ LLM routing failed: {e}")
        return None

    try:
        plan = validate_plan(raw)
    except ValueError as e:
        logger.warning(f"⚠️  Routing model plan rejected: {e}")
        return None

    if plan is None:
        return None

    if plan.confidence < ROUTER_MIN_CONFIDENCE:
        logger.info(f"Routing model plan inconclusive (confidence {plan.confidence:.2f})")
        return None

    logger.info(
        f"🧭 Model plan: {plan.intent.value} → [{'→'.join(plan.tool_sequence)}] "
        f"(confidence: {plan.confidence:.2f})"
    )
    return plan


def route(text: str, context: Optional[Context] = None, use_model: Optional[bool] = None) -> Plan:
    """
    Build the routing plan for a request.

    Uses the routing model when enabled; falls back to `pattern_route`
    whenever the model is unavailable, fails, or is inconclusive.

    Args:
        text: The user's message
        context: Session context
        use_model: Force the model path on/off (defaults to configuration)

    Returns:
        Plan
    """
    if use_model is None:
        use_model = ROUTER_MODEL_ENABLED

    if use_model:
        plan = generate_routing_plan(text, context)
        if plan is not None:
            return plan

    return pattern_route(text, context)


def _mutates(plan: Plan) -> bool:
    return plan.intent.is_mutating or any(is_mutating(tool) for tool in plan.tool_sequence)


def constrain_plan(
    plan: Plan,
    intent: IntentType,
    text: str,
    context: Optional[Context] = None,
) -> Plan:
    """
    Keep a plan within what the classified intent allows.

    A READ_ONLY classification turns a mutating plan into the read plan for
    the same message ("show commit history" never commits). A CONVERSATION
    classification drops a mutating plan unless the message is a follow-up
    on a recent file, which the classifier cannot see.

    Args:
        plan: Routed plan
        intent: Classified intent
        text: The user's message
        context: Session context

    Returns:
        The plan itself, or a non-mutating replacement
    """
    if intent.is_mutating or not _mutates(plan):
        return plan

    message = text or ""
    signals = _extract_signals(message, context)

    if intent == IntentType.READ_ONLY:
        constrained = _read_plan(signals)
    elif signals.anaphor_target:
        return plan
    else:
        constrained = _conversation_plan()

    logger.info(
        f"🛡️  {plan.intent.value} plan overridden by {intent.value} classification → "
        f"[{'→'.join(constrained.tool_sequence)}]"
    )
    return constrained


# ============================================================================
# ROUTING GUIDANCE
# ============================================================================

def build_routing_guidance(plan: Plan) -> str:
    """
    Render a plan as guidance text for an unconstrained tool-calling prompt.

    Args:
        plan: The routing plan

    Returns:
        Guidance block, or an empty string for plans without tools
    """
    if not plan.tool_sequence:
        return ""

    lines = [
        "",
        "## ROUTING GUIDANCE",
        f"Intent: {plan.intent.value}",
        f"Suggested tool sequence: {' → '.join(plan.tool_sequence)}",
    ]

    if plan.parameter_hints:
        lines.append("")
        lines.append("Parameter hints:")
        for tool, hints in plan.parameter_hints.items():
            lines.append(f"- {tool}: {json.dumps(hints)}")

    if plan.reasoning:
        lines.append("")
        lines.append(f"Reasoning: {plan.reasoning}")

    lines.append("")
    lines.append(
        "This is a suggested starting point - feel free to explore or deviate as needed. "
        "When uncertain, default to exploration (list_files, search_files)."
    )
    return "\n".join(lines)
