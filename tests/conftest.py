"""
Shared pytest configuration.

Model-backed paths and tracing are switched off before any project module
reads its settings, so tests exercise the deterministic paths unless a test
patches a model call explicitly.
"""

import os

os.environ["CLASSIFIER_MODEL_ENABLED"] = "false"
os.environ["ROUTER_MODEL_ENABLED"] = "false"
os.environ["LANGFUSE_ENABLED"] = "false"
os.environ["LANGFUSE_TRACING_ENABLED"] = "false"

import pytest

from core import Context, ErrorTracker, Request


class FakeClock:
    """Manually advanced clock for cooldown tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingNotifier:
    """Synchronous stand-in for StatusNotifier that keeps every event."""

    def __init__(self):
        self.events = []

    def publish(self, category, message, data=None):
        self.events.append((category, message, dict(data or {})))
        return True

    def categories(self):
        return [category for category, _, _ in self.events]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    """Fresh tracker per test so cooldown state never leaks between tests."""
    return ErrorTracker(failure_threshold=3, clock=clock)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def recent_context():
    from tests import RECENT_FILE
    return Context(recent_files=(RECENT_FILE, "src/older-page.html"))


@pytest.fixture
def make_request():
    def _make(text, context=None, channel_id="channel-1"):
        return Request(text=text, requester_id="user-1", channel_id=channel_id, context=context or Context())
    return _make
