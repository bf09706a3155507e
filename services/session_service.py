"""
Session Service - Main Coordinator

Orchestrates the per-channel request flow:
1. Receives the message and who/where it came from
2. Attaches the channel's session context (recent files, last action)
3. Routes to the agent orchestrator
4. Remembers files that were written or edited for follow-ups
5. Returns a formatted response

This is the main entry point for chat front-ends.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from ai import get_langfuse_client
from core import AgentOrchestrator, AgentState, AgentStatus, Context, Request

logger = logging.getLogger(__name__)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class SessionResponse:
    """
    Response from the session service.

    Attributes:
        message: The response text to show the user
        success: Whether the request was handled successfully
        metadata: Additional metadata about the response
        agent_state: Full agent execution state (for debugging)
    """
    message: str
    success: bool
    metadata: Dict[str, Any]
    agent_state: Optional[AgentState] = None


@dataclass
class _ChannelSession:
    recent_files: Deque[str]
    action_summary: Optional[str] = None


# ============================================================================
# SESSION SERVICE
# ============================================================================

class SessionService:
    """
    Keeps per-channel context between requests and runs each request
    through the orchestrator.
    """

    def __init__(
        self,
        orchestrator: Optional[AgentOrchestrator] = None,
        max_recent_files: int = 10,
        tool_registry: Optional[Dict[str, Callable]] = None,
    ):
        """
        Initialize the session service.

        Args:
            orchestrator: Orchestrator to run requests with
            max_recent_files: Recent files remembered per channel
            tool_registry: Tools for the default orchestrator (ignored if
                orchestrator is given)
        """
        if orchestrator is None:
            if not tool_registry:
                logger.warning("⚠️  SessionService started without tools; every tool call will fail")
            orchestrator = AgentOrchestrator(tool_registry=tool_registry or {})

        self.orchestrator = orchestrator
        self.max_recent_files = max_recent_files
        self._sessions: Dict[str, _ChannelSession] = {}
        self._lock = threading.Lock()
        logger.info("✅ SessionService initialized")

    def _session(self, channel_id: str) -> _ChannelSession:
        session = self._sessions.get(channel_id)
        if session is None:
            session = _ChannelSession(recent_files=deque(maxlen=self.max_recent_files))
            self._sessions[channel_id] = session
        return session

    def context_for(self, channel_id: Optional[str], available_files: Optional[List[str]] = None) -> Context:
        """Snapshot of a channel's session context."""
        with self._lock:
            session = self._sessions.get(channel_id or "")
            if session is None:
                return Context(available_files=tuple(available_files or ()))
            return Context(
                recent_files=tuple(session.recent_files),
                available_files=tuple(available_files or ()),
                action_summary=session.action_summary,
            )

    def recent_files(self, channel_id: str) -> List[str]:
        """Recent files for a channel, most recent first."""
        with self._lock:
            session = self._sessions.get(channel_id)
            return list(session.recent_files) if session else []

    def remember(self, channel_id: str, paths: List[str], action_summary: Optional[str] = None) -> None:
        """Push paths to the front of the channel's recent files."""
        with self._lock:
            session = self._session(channel_id)
            for path in paths:
                if path in session.recent_files:
                    session.recent_files.remove(path)
                session.recent_files.appendleft(path)
            if action_summary:
                session.action_summary = action_summary

    def forget(self, channel_id: str) -> None:
        """Drop everything remembered for a channel."""
        with self._lock:
            self._sessions.pop(channel_id, None)

    def process_request(
        self,
        text: str,
        requester_id: Optional[str] = None,
        channel_id: Optional[str] = None,
        available_files: Optional[List[str]] = None,
    ) -> SessionResponse:
        """
        Process a user message and generate a response.

        Args:
            text: The user's input text
            requester_id: Who sent the message
            channel_id: Where it was sent; session context is kept per channel
            available_files: Files currently in the canonical folder

        Returns:
            SessionResponse with the outcome and metadata
        """
        channel = channel_id or ""
        logger.info(f"💬 Processing message (channel: {channel or '-'}): {text[:50]}...")

        request = Request(
            text=text,
            requester_id=requester_id,
            channel_id=channel_id,
            context=self.context_for(channel, available_files),
        )

        try:
            agent_state = self.orchestrator.run(request)
        except Exception as e:
            logger.error(f"❌ SessionService error: {e}", exc_info=True)
            return SessionResponse(
                message=self._get_error_message(),
                success=False,
                metadata={"error": str(e), "channel_id": channel_id},
            )

        summary = agent_state.get_execution_summary()
        summary["channel_id"] = channel_id

        if agent_state.status == AgentStatus.COMPLETED:
            changed = agent_state.changed_files
            if changed:
                self.remember(
                    channel,
                    list(reversed(changed)),
                    action_summary=f"{summary['intent']}: {', '.join(changed)}",
                )
            return SessionResponse(
                message=agent_state.final_response or "",
                success=True,
                metadata=summary,
                agent_state=agent_state,
            )

        if agent_state.status == AgentStatus.COOLDOWN:
            logger.info(f"🧊 Request refused during cooldown (channel: {channel or '-'})")
        else:
            logger.error(f"❌ Agent {agent_state.status.value}: {agent_state.error_message}")
            summary["error"] = agent_state.error_message

        return SessionResponse(
            message=agent_state.final_response or self._get_error_message(),
            success=False,
            metadata=summary,
            agent_state=agent_state,
        )

    def flush(self) -> None:
        """Flush pending traces (call on shutdown)."""
        client = get_langfuse_client()
        if client is not None:
            client.flush()

    def _get_error_message(self) -> str:
        """Get a friendly error message."""
        return (
            "I'm having trouble processing your request right now. "
            "This could be a temporary issue. Please try rephrasing, "
            "or try again in a moment."
        )


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

def process_request(
    text: str,
    tool_registry: Dict[str, Callable],
    requester_id: Optional[str] = None,
    channel_id: Optional[str] = None,
) -> SessionResponse:
    """
    Convenience function to process a single message without a long-lived
    session.

    Args:
        text: The user's message
        tool_registry: Tools available to the orchestrator
        requester_id: Who sent the message
        channel_id: Where it was sent

    Returns:
        SessionResponse
    """
    service = SessionService(tool_registry=tool_registry)
    return service.process_request(text, requester_id=requester_id, channel_id=channel_id)
