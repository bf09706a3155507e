"""
Unit Tests for Session Service

Tests per-channel context and the request flow through the orchestrator.
"""

import pytest
from unittest.mock import Mock, patch

from core import AgentOrchestrator, Context, IntentType, Request
from core.orchestrator import AgentState, AgentStatus, ToolCallRecord
from services.session_service import SessionService, SessionResponse


def ok_registry(calls):
    def make_tool(name):
        def tool(**kwargs):
            calls.append((name, kwargs))
            return {"success": True}
        return tool
    return {name: make_tool(name) for name in (
        "file_exists", "read_file", "write_file", "edit_file", "list_files",
        "search_files", "web_search", "get_repo_status", "commit_changes",
    )}


class TestSessionService:
    """Test SessionService class."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def service(self, calls, tracker):
        """Fixture providing SessionService with recording tools."""
        orchestrator = AgentOrchestrator(ok_registry(calls), error_tracker=tracker)
        return SessionService(orchestrator=orchestrator, max_recent_files=3)

    def test_edit_remembers_file(self, service):
        """Test edited files become the channel's most recent file."""
        response = service.process_request("fix the bug in game.html", requester_id="u1", channel_id="c1")

        assert isinstance(response, SessionResponse)
        assert response.success is True
        assert response.metadata["intent"] == "EDIT_EXISTING"
        assert service.recent_files("c1") == ["src/game.html"]

    def test_follow_up_uses_recent_file(self, service, calls):
        """Test 'make it darker' edits the file from the previous request."""
        service.process_request("fix the bug in game.html", channel_id="c1")
        calls.clear()

        response = service.process_request("make it darker", channel_id="c1")

        assert response.success is True
        assert ("edit_file", {"path": "src/game.html"}) in calls

    def test_channels_are_isolated(self, service):
        """Test one channel's files never leak into another."""
        service.process_request("fix the bug in game.html", channel_id="c1")

        assert service.recent_files("c2") == []
        assert service.context_for("c2").recent_files == ()

    def test_recent_files_bounded_and_ordered(self, service):
        """Test most recent first, duplicates moved to front, bounded size."""
        service.remember("c1", ["src/a.html"])
        service.remember("c1", ["src/b.html"])
        service.remember("c1", ["src/c.html"])
        service.remember("c1", ["src/a.html"])
        service.remember("c1", ["src/d.html"])

        assert service.recent_files("c1") == ["src/d.html", "src/a.html", "src/c.html"]

    def test_forget(self, service):
        """Test forgetting a channel clears its context."""
        service.remember("c1", ["src/a.html"], action_summary="edited a")
        service.forget("c1")

        assert service.recent_files("c1") == []
        assert service.context_for("c1") == Context()

    def test_context_passed_to_orchestrator(self):
        """Test the request carries the channel's context."""
        orchestrator = Mock()
        orchestrator.run.return_value = AgentState(
            request=Request(text="hi"),
            status=AgentStatus.COMPLETED,
            final_response="hello!",
        )
        service = SessionService(orchestrator=orchestrator)
        service.remember("c1", ["src/x.html"], action_summary="CREATE_NEW: src/x.html")

        service.process_request("hi", requester_id="u1", channel_id="c1", available_files=["src/x.html"])

        request = orchestrator.run.call_args[0][0]
        assert request.requester_id == "u1"
        assert request.context.recent_files == ("src/x.html",)
        assert request.context.available_files == ("src/x.html",)
        assert request.context.action_summary == "CREATE_NEW: src/x.html"

    def test_failed_request_not_remembered(self):
        """Test failures never update recent files."""
        orchestrator = Mock()
        state = AgentState(request=Request(text="edit a.html"), status=AgentStatus.FAILED, error_message="no match")
        state.tool_calls.append(ToolCallRecord("edit_file", {"path": "src/a.html"}, error="no match"))
        orchestrator.run.return_value = state
        service = SessionService(orchestrator=orchestrator)

        response = service.process_request("edit a.html", channel_id="c1")

        assert response.success is False
        assert response.metadata["error"] == "no match"
        assert service.recent_files("c1") == []

    def test_cooldown_response(self, service, tracker, calls):
        """Test cooldown notices are returned unchanged."""
        for _ in range(3):
            tracker.record_outcome(IntentType.CREATE_NEW, success=False)

        response = service.process_request("create a snake game", channel_id="c1")

        assert response.success is False
        assert "try again" in response.message
        assert calls == []

    def test_orchestrator_exception_handled(self):
        """Test unexpected errors become a friendly failure."""
        orchestrator = Mock()
        orchestrator.run.side_effect = RuntimeError("boom")
        service = SessionService(orchestrator=orchestrator)

        response = service.process_request("hello", channel_id="c1")

        assert response.success is False
        assert response.metadata["error"] == "boom"

    @patch('services.session_service.get_langfuse_client')
    def test_flush(self, mock_client):
        """Test flushing pending traces."""
        service = SessionService(orchestrator=Mock())

        service.flush()

        mock_client.return_value.flush.assert_called_once()
