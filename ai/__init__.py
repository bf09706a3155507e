"""
AI Infrastructure Module

This module provides the LLM infrastructure for the request router:
- Gemini API client with error handling and retry logic
- Langfuse observability integration
- Single-label classification calls
- Structured output support

All LLM calls should go through this module to ensure consistent
observability, error handling, and configuration.
"""

from .llm_service import (
    # Main LLM functions
    call_llm_with_tools,
    classify_label,

    # Structured output
    generate_structured_output,

    # Observability
    get_langfuse_client,
)

__all__ = [
    "call_llm_with_tools",
    "classify_label",
    "generate_structured_output",
    "get_langfuse_client",
]
