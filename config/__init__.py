"""
Configuration module for the request router.

This module provides centralized configuration management including:
- Application settings (models, API keys, budgets, limits)
- Prompt templates and system instructions
- Tool definitions and schemas

All configurable values should be imported from this module to ensure
consistency across the application.
"""

from .settings import (
    # Paths
    BASE_DIR,

    # API Keys
    GOOGLE_API_KEY,

    # LLM Settings
    GEMINI_MODEL,
    TEMPERATURE,
    MAX_TOKENS,
    TOP_P,
    TOP_K,
    MAX_RETRIES,
    RETRY_DELAY,
    TIMEOUT,

    # Classifier Settings
    INTENT_LABELS,
    MIN_LABEL_BUDGET,
    CLASSIFIER_MODEL,
    CLASSIFIER_TIMEOUT,
    CLASSIFIER_MAX_OUTPUT_TOKENS,
    CLASSIFIER_MODEL_ENABLED,

    # Router Settings
    ROUTER_MODEL,
    ROUTER_TIMEOUT,
    ROUTER_MAX_TOKENS,
    ROUTER_MIN_CONFIDENCE,
    ROUTER_MODEL_ENABLED,

    # Langfuse Settings
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    LANGFUSE_HOST,
    LANGFUSE_ENABLED,

    # Path Resolution
    CANONICAL_DIR,
    SITE_HOST,
    PAGE_EXTENSIONS,
    CODE_EXTENSIONS,
    RECOGNIZED_EXTENSIONS,

    # Orchestration
    MAX_CONSTRAINED_ATTEMPTS,
    MAX_STEP_RETRIES,
    FAILURE_THRESHOLD,
    COOLDOWN_MINUTES,
    COOLDOWN_NOTICE,

    # Debug
    DEBUG,
    LOG_LEVEL,
)

from .prompts import (
    # System Prompts
    SYSTEM_PROMPT,
    CLASSIFIER_SYSTEM_PROMPT,
    CLASSIFIER_PROMPT,
    ROUTER_SYSTEM_PROMPT,
    ESCALATION_PROMPT,

    # Tool Definitions
    TOOL_DEFINITIONS,

    # Output Schemas
    PLAN_SCHEMA,

    # Utilities
    format_prompt,
    build_classifier_prompt,
    get_tool_by_name,
)

__all__ = [
    # Settings
    "BASE_DIR",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "TEMPERATURE",
    "MAX_TOKENS",
    "TOP_P",
    "TOP_K",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "TIMEOUT",
    "INTENT_LABELS",
    "MIN_LABEL_BUDGET",
    "CLASSIFIER_MODEL",
    "CLASSIFIER_TIMEOUT",
    "CLASSIFIER_MAX_OUTPUT_TOKENS",
    "CLASSIFIER_MODEL_ENABLED",
    "ROUTER_MODEL",
    "ROUTER_TIMEOUT",
    "ROUTER_MAX_TOKENS",
    "ROUTER_MIN_CONFIDENCE",
    "ROUTER_MODEL_ENABLED",
    "LANGFUSE_PUBLIC_KEY",
    "LANGFUSE_SECRET_KEY",
    "LANGFUSE_HOST",
    "LANGFUSE_ENABLED",
    "CANONICAL_DIR",
    "SITE_HOST",
    "PAGE_EXTENSIONS",
    "CODE_EXTENSIONS",
    "RECOGNIZED_EXTENSIONS",
    "MAX_CONSTRAINED_ATTEMPTS",
    "MAX_STEP_RETRIES",
    "FAILURE_THRESHOLD",
    "COOLDOWN_MINUTES",
    "COOLDOWN_NOTICE",
    "DEBUG",
    "LOG_LEVEL",

    # Prompts
    "SYSTEM_PROMPT",
    "CLASSIFIER_SYSTEM_PROMPT",
    "CLASSIFIER_PROMPT",
    "ROUTER_SYSTEM_PROMPT",
    "ESCALATION_PROMPT",
    "TOOL_DEFINITIONS",
    "PLAN_SCHEMA",
    "format_prompt",
    "build_classifier_prompt",
    "get_tool_by_name",
]
