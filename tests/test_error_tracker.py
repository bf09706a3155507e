"""
Unit Tests for the Error Tracker

Tests consecutive-failure counting, cooldown entry and expiry, and
thread safety.
"""

import threading
from datetime import timedelta

import pytest

from core import ErrorTracker, IntentType


class TestErrorTracker:
    """Test cooldown behavior."""

    def test_cooldown_after_threshold(self, tracker):
        """Test three consecutive mutating failures start a cooldown."""
        for _ in range(2):
            tracker.record_outcome(IntentType.EDIT_EXISTING, success=False)
        assert not tracker.is_in_cooldown()

        tracker.record_outcome(IntentType.COMMIT, success=False)
        assert tracker.is_in_cooldown()
        assert tracker.cooldown_remaining() == pytest.approx(300.0)

    def test_success_resets_counter(self, tracker):
        """Test a success clears the failure streak."""
        tracker.record_outcome(IntentType.CREATE_NEW, success=False)
        tracker.record_outcome(IntentType.CREATE_NEW, success=False)
        tracker.record_outcome(IntentType.CREATE_NEW, success=True)
        tracker.record_outcome(IntentType.CREATE_NEW, success=False)

        assert tracker.snapshot().consecutive_failures == 1
        assert not tracker.is_in_cooldown()

    def test_non_mutating_intents_ignored(self, tracker):
        """Test reads and chat never count."""
        for _ in range(5):
            tracker.record_outcome(IntentType.READ_ONLY, success=False)
            tracker.record_outcome(IntentType.CONVERSATION, success=False)

        assert tracker.snapshot().consecutive_failures == 0
        assert not tracker.is_in_cooldown()

    def test_expiry_resets_counter(self, tracker, clock):
        """Test cooldown ends after its duration and the counter restarts."""
        for _ in range(3):
            tracker.record_outcome(IntentType.EDIT_EXISTING, success=False)
        assert tracker.is_in_cooldown()

        clock.advance(299)
        assert tracker.is_in_cooldown()

        clock.advance(1)
        assert not tracker.is_in_cooldown()
        assert tracker.snapshot().consecutive_failures == 0
        assert tracker.cooldown_remaining() == 0.0

    def test_reset(self, tracker):
        """Test manual reset."""
        for _ in range(3):
            tracker.record_outcome(IntentType.EDIT_EXISTING, success=False)
        tracker.reset()

        window = tracker.snapshot()
        assert window.consecutive_failures == 0
        assert window.cooldown_until is None
        assert window.last_failure_at is None

    def test_custom_window(self, clock):
        """Test custom threshold and duration."""
        tracker = ErrorTracker(failure_threshold=1, cooldown=timedelta(seconds=10), clock=clock)
        tracker.record_outcome(IntentType.COMMIT, success=False)

        assert tracker.cooldown_remaining() == pytest.approx(10.0)

    def test_invalid_threshold(self):
        """Test the threshold must be positive."""
        with pytest.raises(ValueError):
            ErrorTracker(failure_threshold=0)

    def test_concurrent_failures_counted_exactly(self, clock):
        """Test concurrent updates do not lose counts."""
        tracker = ErrorTracker(failure_threshold=10_000, clock=clock)

        def fail_many():
            for _ in range(500):
                tracker.record_outcome(IntentType.EDIT_EXISTING, success=False)

        threads = [threading.Thread(target=fail_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.snapshot().consecutive_failures == 4000
