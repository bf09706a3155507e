"""
Application settings and configuration values.

This module centralizes all configuration values including:
- API keys and model parameters
- Classifier and router budgets (timeouts, output lengths)
- Path resolution constants (canonical folder, site host, extensions)
- Orchestration limits and cooldown policy

Environment variables are loaded via python-dotenv.
"""

import os
import logging
from pathlib import Path
from typing import FrozenSet
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


# ============================================================================
# PATHS
# ============================================================================

BASE_DIR = Path(__file__).parent.parent

# ============================================================================
# LLM CONFIGURATION
# ============================================================================

# Gemini API Settings
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")

if not GOOGLE_API_KEY:
    logger.warning(
        "GOOGLE_API_KEY not found in environment variables. "
        "Model-based classification and routing are disabled; "
        "deterministic fallbacks will be used."
    )

# Model Parameters
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "8192"))
TOP_P = float(os.getenv("TOP_P", "0.95"))
TOP_K = int(os.getenv("TOP_K", "40"))

# Retry and Timeout Settings
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "1.0"))  # seconds
TIMEOUT = int(os.getenv("TIMEOUT", "30"))  # seconds

# ============================================================================
# CLASSIFIER
# ============================================================================

INTENT_LABELS = ("CREATE_NEW", "EDIT_EXISTING", "READ_ONLY", "COMMIT", "CONVERSATION")

# Output budget must hold the longest label with room to spare; a budget of 4
# truncates EDIT_EXISTING and every answer becomes invalid.
LABEL_BUDGET_MARGIN = 4
MIN_LABEL_BUDGET = max(len(label) for label in INTENT_LABELS) + LABEL_BUDGET_MARGIN

CLASSIFIER_MODEL = os.getenv("CLASSIFIER_MODEL", "gemini-2.0-flash-lite")
CLASSIFIER_TIMEOUT = float(os.getenv("CLASSIFIER_TIMEOUT", "5.0"))  # seconds
CLASSIFIER_MAX_OUTPUT_TOKENS = int(os.getenv("CLASSIFIER_MAX_OUTPUT_TOKENS", "24"))
CLASSIFIER_MODEL_ENABLED = _env_flag("CLASSIFIER_MODEL_ENABLED", "true") and bool(GOOGLE_API_KEY)

if CLASSIFIER_MAX_OUTPUT_TOKENS < MIN_LABEL_BUDGET:
    logger.warning(
        f"⚠️  CLASSIFIER_MAX_OUTPUT_TOKENS={CLASSIFIER_MAX_OUTPUT_TOKENS} cannot hold "
        f"every intent label; raising it to {MIN_LABEL_BUDGET}"
    )
    CLASSIFIER_MAX_OUTPUT_TOKENS = MIN_LABEL_BUDGET

# ============================================================================
# ROUTER
# ============================================================================

ROUTER_MODEL = os.getenv("ROUTER_MODEL", "gemini-2.0-flash")
ROUTER_TIMEOUT = float(os.getenv("ROUTER_TIMEOUT", "4.0"))  # seconds
ROUTER_MAX_TOKENS = int(os.getenv("ROUTER_MAX_TOKENS", "500"))
ROUTER_MIN_CONFIDENCE = float(os.getenv("ROUTER_MIN_CONFIDENCE", "0.5"))
ROUTER_MODEL_ENABLED = _env_flag("ROUTER_MODEL_ENABLED", "true") and bool(GOOGLE_API_KEY)

# ============================================================================
# LANGFUSE OBSERVABILITY
# ============================================================================

LANGFUSE_PUBLIC_KEY = os.getenv("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.getenv("LANGFUSE_SECRET_KEY")
LANGFUSE_HOST = os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")

# Enable/disable Langfuse tracing
LANGFUSE_ENABLED = _env_flag("LANGFUSE_ENABLED", "true")

if LANGFUSE_ENABLED and (not LANGFUSE_PUBLIC_KEY or not LANGFUSE_SECRET_KEY):
    logger.info("Langfuse is enabled but keys are missing. Tracing will be disabled.")
    LANGFUSE_ENABLED = False

# ============================================================================
# PATH RESOLUTION
# ============================================================================

# Folder that page documents live in; informal "page.html" becomes "src/page.html"
CANONICAL_DIR = os.getenv("CANONICAL_DIR", "src")

# Public host serving the repository; "<host>/src/x.html" resolves to "src/x.html"
SITE_HOST = os.getenv("SITE_HOST", "bot.inference-arcade.com")

PAGE_EXTENSIONS: FrozenSet[str] = frozenset({"html"})
CODE_EXTENSIONS: FrozenSet[str] = frozenset({"js", "css"})
RECOGNIZED_EXTENSIONS: FrozenSet[str] = PAGE_EXTENSIONS | CODE_EXTENSIONS

# ============================================================================
# ORCHESTRATION
# ============================================================================

MAX_CONSTRAINED_ATTEMPTS = int(os.getenv("MAX_CONSTRAINED_ATTEMPTS", "2"))
MAX_STEP_RETRIES = int(os.getenv("MAX_STEP_RETRIES", "1"))

# Circuit breaker for mutating operations
FAILURE_THRESHOLD = int(os.getenv("FAILURE_THRESHOLD", "3"))
COOLDOWN_MINUTES = float(os.getenv("COOLDOWN_MINUTES", "5"))

COOLDOWN_NOTICE = (
    "I've hit too many errors in a row while changing files. "
    "Taking a short break; please try again in {minutes} minute(s)."
)

# ============================================================================
# DEVELOPMENT / DEBUG SETTINGS
# ============================================================================

DEBUG = _env_flag("DEBUG", "false")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Print configuration summary on import (only in debug mode)
if DEBUG:
    print("\n" + "="*60)
    print("🔧 Router Configuration Loaded")
    print("="*60)
    print(f"Classifier model: {CLASSIFIER_MODEL} (enabled: {CLASSIFIER_MODEL_ENABLED})")
    print(f"Router model: {ROUTER_MODEL} (enabled: {ROUTER_MODEL_ENABLED})")
    print(f"Classifier budget: {CLASSIFIER_MAX_OUTPUT_TOKENS} tokens, {CLASSIFIER_TIMEOUT}s")
    print(f"Langfuse: {'✅ Enabled' if LANGFUSE_ENABLED else '❌ Disabled'}")
    print(f"Cooldown: {FAILURE_THRESHOLD} failures -> {COOLDOWN_MINUTES} min")
    print(f"Debug Mode: {DEBUG}")
    print("="*60 + "\n")
