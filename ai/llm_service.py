"""
LLM Service - Gemini API Wrapper with Langfuse Observability

This service provides the router's only interface to Google's Gemini API:
- Automatic retry logic with exponential backoff
- Langfuse tracing for all LLM calls
- Hard per-request timeouts
- Single-label classification calls with a bounded output budget
- Support for function calling (tools)
- Structured JSON output with healing of malformed responses

All LLM interactions should use this service.
"""

import time
import logging
from typing import Optional, Dict, List, Any
from functools import wraps

import google.generativeai as genai
from google.generativeai.types import GenerationConfig, HarmCategory, HarmBlockThreshold
from langfuse import Langfuse, observe, get_client

from config import (
    GOOGLE_API_KEY,
    GEMINI_MODEL,
    CLASSIFIER_MODEL,
    TEMPERATURE,
    MAX_TOKENS,
    TOP_P,
    TOP_K,
    MAX_RETRIES,
    RETRY_DELAY,
    TIMEOUT,
    LANGFUSE_PUBLIC_KEY,
    LANGFUSE_SECRET_KEY,
    LANGFUSE_HOST,
    LANGFUSE_ENABLED,
    LOG_LEVEL,
)
from utils.json_healing import heal_and_parse

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# ============================================================================
# INITIALIZATION
# ============================================================================

if GOOGLE_API_KEY:
    genai.configure(api_key=GOOGLE_API_KEY)

_langfuse_client: Optional[Langfuse] = None

if LANGFUSE_ENABLED:
    try:
        _langfuse_client = Langfuse(
            public_key=LANGFUSE_PUBLIC_KEY,
            secret_key=LANGFUSE_SECRET_KEY,
            host=LANGFUSE_HOST,
        )
        logger.info("✅ Langfuse observability initialized")
    except Exception as e:
        logger.warning(f"⚠️  Langfuse initialization failed: {e}. Continuing without tracing.")
        _langfuse_client = None
else:
    logger.info("ℹ️  Langfuse observability disabled")


def get_langfuse_client() -> Optional[Langfuse]:
    """Get the Langfuse client instance."""
    return _langfuse_client


def _update_trace(name: str, metadata: Dict[str, Any]) -> None:
    if _langfuse_client:
        get_client().update_current_trace(name=name, metadata=metadata)


def _track_usage(response: Any, latency: float) -> None:
    usage = getattr(response, "usage_metadata", None)
    if usage is None:
        return

    if _langfuse_client:
        get_client().update_current_generation(
            usage_details={
                "input": usage.prompt_token_count,
                "output": usage.candidates_token_count,
                "total": usage.total_token_count,
            }
        )

    logger.debug(
        f"📊 Tokens: {usage.prompt_token_count} in, "
        f"{usage.candidates_token_count} out, "
        f"⏱️  {latency:.2f}s"
    )


# ============================================================================
# SAFETY SETTINGS
# ============================================================================

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


# ============================================================================
# GENERATION CONFIGURATION
# ============================================================================

def get_generation_config(
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    top_p: Optional[float] = None,
    top_k: Optional[int] = None,
    response_mime_type: Optional[str] = None,
    response_schema: Optional[Dict] = None,
) -> GenerationConfig:
    """
    Create a generation configuration for Gemini API calls.

    Args:
        temperature: Sampling temperature (0.0 - 2.0). Defaults to config value.
        max_tokens: Maximum tokens to generate. Defaults to config value.
        top_p: Nucleus sampling parameter. Defaults to config value.
        top_k: Top-k sampling parameter. Defaults to config value.
        response_mime_type: MIME type for structured output (e.g., "application/json")
        response_schema: JSON schema for structured output validation

    Returns:
        GenerationConfig object
    """
    config_dict = {
        "temperature": TEMPERATURE if temperature is None else temperature,
        "max_output_tokens": max_tokens or MAX_TOKENS,
        "top_p": top_p or TOP_P,
        "top_k": top_k or TOP_K,
    }

    # Add structured output configuration if provided
    if response_mime_type:
        config_dict["response_mime_type"] = response_mime_type
    if response_schema:
        config_dict["response_schema"] = response_schema

    return GenerationConfig(**config_dict)


# ============================================================================
# RETRY DECORATOR
# ============================================================================

def retry_on_error(max_retries: int = MAX_RETRIES, delay: float = RETRY_DELAY):
    """
    Decorator to retry function calls on transient API errors.
    Implements exponential backoff.

    Args:
        max_retries: Maximum number of attempts (1 disables retrying)
        delay: Initial delay between retries (seconds)
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            retries = 0
            current_delay = delay

            while retries < max_retries:
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    error_type = type(e).__name__
                    error_msg = str(e)

                    # Determine if error is retryable
                    retryable = any([
                        "rate limit" in error_msg.lower(),
                        "quota" in error_msg.lower(),
                        "timeout" in error_msg.lower(),
                        "503" in error_msg,
                        "429" in error_msg,
                        "500" in error_msg,
                    ])

                    if not retryable or retries >= max_retries - 1:
                        logger.error(f"❌ {func.__name__} failed: {error_type}: {error_msg}")
                        raise

                    retries += 1
                    logger.warning(
                        f"⚠️  {func.__name__} failed (attempt {retries}/{max_retries}): "
                        f"{error_type}. Retrying in {current_delay}s..."
                    )

                    time.sleep(current_delay)
                    current_delay *= 2  # Exponential backoff

            raise RuntimeError(f"Max retries ({max_retries}) exceeded")

        return wrapper
    return decorator


# ============================================================================
# CORE LLM FUNCTIONS
# ============================================================================

@observe(name="classify_label", as_type="generation")
@retry_on_error(max_retries=1)
def classify_label(
    prompt: str,
    system_instruction: Optional[str] = None,
    max_tokens: Optional[int] = None,
    timeout: Optional[float] = None,
    model_name: Optional[str] = None,
) -> str:
    """
    Ask the model for a single classification label.

    No retries: the caller enforces a hard deadline and falls back to
    deterministic classification on any failure.

    Args:
        prompt: Classification prompt listing the allowed labels
        system_instruction: System prompt constraining the answer format
        max_tokens: Output budget; must fit the longest label
        timeout: Request timeout in seconds
        model_name: Model to use (defaults to CLASSIFIER_MODEL)

    Returns:
        Raw model text (unvalidated)
    """
    model_name = model_name or CLASSIFIER_MODEL

    _update_trace("classify_label", {"model": model_name, "max_tokens": max_tokens})

    model = genai.GenerativeModel(
        model_name=model_name,
        generation_config=get_generation_config(temperature=0.1, max_tokens=max_tokens),
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction,
    )

    start_time = time.time()
    response = model.generate_content(
        prompt,
        request_options={"timeout": timeout or TIMEOUT},
    )
    latency = time.time() - start_time

    if not response.candidates:
        raise ValueError("No response candidates returned from Gemini API")

    _track_usage(response, latency)
    return response.text


@observe(name="call_llm_with_tools", as_type="generation")
@retry_on_error()
def call_llm_with_tools(
    prompt: str,
    tools: List[Dict],
    system_instruction: Optional[str] = None,
    temperature: Optional[float] = None,
    model_name: Optional[str] = None,
    timeout: Optional[float] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Make an LLM call with function calling (tools) enabled.

    Args:
        prompt: The user prompt/query
        tools: List of tool definitions (function calling schemas)
        system_instruction: System prompt
        temperature: Sampling temperature
        model_name: Model to use
        timeout: Request timeout in seconds
        metadata: Additional metadata for tracking

    Returns:
        Dict with:
            - response_text: The text response (if any)
            - tool_calls: List of tool calls requested by the LLM
            - raw_response: Full API response object
    """
    model_name = model_name or GEMINI_MODEL

    _update_trace("llm_call_with_tools", {
        "model": model_name,
        "num_tools": len(tools),
        **(metadata or {})
    })

    model = genai.GenerativeModel(
        model_name=model_name,
        generation_config=get_generation_config(temperature),
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction,
        tools=[{"function_declarations": tools}],
    )

    start_time = time.time()
    response = model.generate_content(
        prompt,
        request_options={"timeout": timeout or TIMEOUT},
    )
    latency = time.time() - start_time

    result = {
        "response_text": None,
        "tool_calls": [],
        "raw_response": response,
        "latency": latency,
    }

    if response.candidates:
        candidate = response.candidates[0]

        if candidate.content.parts:
            for part in candidate.content.parts:
                if hasattr(part, 'text') and part.text:
                    result["response_text"] = part.text

                if hasattr(part, 'function_call') and part.function_call:
                    func_call = part.function_call
                    result["tool_calls"].append({
                        "name": func_call.name,
                        "args": dict(func_call.args),
                    })

    _track_usage(response, latency)
    logger.debug(f"🔧 Tool call: {len(result['tool_calls'])} functions, ⏱️  {latency:.2f}s")

    return result


@observe(name="generate_structured_output", as_type="generation")
@retry_on_error()
def generate_structured_output(
    prompt: str,
    schema: Dict,
    system_instruction: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    model_name: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Dict:
    """
    Generate structured JSON output conforming to a specific schema.

    Args:
        prompt: The user prompt/query
        schema: JSON schema defining the expected output structure
        system_instruction: System prompt
        temperature: Sampling temperature
        max_tokens: Max output tokens
        model_name: Model to use
        timeout: Request timeout in seconds

    Returns:
        Parsed JSON object matching the schema

    Raises:
        ValueError: If output is not valid JSON even after healing
    """
    model_name = model_name or GEMINI_MODEL

    _update_trace("structured_output", {"model": model_name, "schema": schema.get("type", "unknown")})

    model = genai.GenerativeModel(
        model_name=model_name,
        generation_config=get_generation_config(
            temperature=temperature,
            max_tokens=max_tokens,
            response_mime_type="application/json",
            response_schema=schema,
        ),
        safety_settings=SAFETY_SETTINGS,
        system_instruction=system_instruction,
    )

    start_time = time.time()
    response = model.generate_content(
        prompt,
        request_options={"timeout": timeout or TIMEOUT},
    )
    latency = time.time() - start_time

    text = response.text
    healed = heal_and_parse(text)

    if healed.parsed is None or not isinstance(healed.parsed, dict):
        logger.error(f"❌ Invalid JSON from LLM: {text[:200]}...")
        raise ValueError(f"LLM did not return a valid JSON object: {healed.error}")

    if healed.healed:
        logger.info(f"🩹 Healed structured output: {', '.join(healed.repairs)}")

    _track_usage(response, latency)
    logger.debug(f"📋 Structured output generated in {latency:.2f}s")

    return healed.parsed
