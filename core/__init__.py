"""
Core Routing Logic Module

This module contains the brain of the request router:
- Intent classification (classifier): Decides what the user wants
- Plan building (router): Chooses tools, order and arguments
- Agent orchestration: Runs plans with retries and escalation
- Safety rails: attempt state machine, failure cooldown, status events

The model-backed paths always have a deterministic fallback, so every
request gets a decision even when the model is slow or unavailable.
"""

from .models import (
    IntentType,
    MUTATING_INTENTS,
    Context,
    Request,
)

from .classifier import (
    ClassificationResult,
    classify,
    fallback_classification,
    get_intent_description,
)

from .router import (
    Plan,
    route,
    pattern_route,
    constrain_plan,
    generate_routing_plan,
    validate_plan,
    build_routing_guidance,
)

from .attempts import (
    AttemptPhase,
    AttemptOutcome,
    AttemptState,
    next_state,
)

from .error_tracker import (
    ErrorTracker,
    ErrorWindow,
    get_error_tracker,
)

from .notifier import (
    StatusEvent,
    StatusNotifier,
)

from .orchestrator import (
    AgentOrchestrator,
    AgentState,
    AgentStatus,
    ToolCallRecord,
    run_agent_loop,
)

__all__ = [
    # Models
    "IntentType",
    "MUTATING_INTENTS",
    "Context",
    "Request",

    # Classifier
    "ClassificationResult",
    "classify",
    "fallback_classification",
    "get_intent_description",

    # Router
    "Plan",
    "route",
    "pattern_route",
    "constrain_plan",
    "generate_routing_plan",
    "validate_plan",
    "build_routing_guidance",

    # Attempts
    "AttemptPhase",
    "AttemptOutcome",
    "AttemptState",
    "next_state",

    # Error tracking
    "ErrorTracker",
    "ErrorWindow",
    "get_error_tracker",

    # Status events
    "StatusEvent",
    "StatusNotifier",

    # Orchestrator
    "AgentOrchestrator",
    "AgentState",
    "AgentStatus",
    "ToolCallRecord",
    "run_agent_loop",
]
