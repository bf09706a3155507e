"""
Session Services Module

This module contains the coordinator chat front-ends call into:
- Session service: per-channel context (recent files, last action) and
  request processing through the agent orchestrator
"""

from .session_service import (
    SessionService,
    SessionResponse,
    process_request,
)

__all__ = [
    "SessionService",
    "SessionResponse",
    "process_request",
]
