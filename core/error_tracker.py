"""
Failure window and cooldown for mutating requests.

After FAILURE_THRESHOLD consecutive failed create/edit/commit requests the
router stops mutating the repository for COOLDOWN_MINUTES. Reads and
conversation are never counted and never blocked.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from config import FAILURE_THRESHOLD, COOLDOWN_MINUTES
from .models import IntentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorWindow:
    """Point-in-time view of the tracker."""
    consecutive_failures: int
    cooldown_until: Optional[float]
    last_failure_at: Optional[float]


class ErrorTracker:
    """
    Thread-safe consecutive-failure counter.

    Every read and update happens under a single lock, so concurrent
    requests cannot race the counter past the threshold unnoticed.
    """

    def __init__(
        self,
        failure_threshold: int = FAILURE_THRESHOLD,
        cooldown: timedelta = timedelta(minutes=COOLDOWN_MINUTES),
        clock: Callable[[], float] = time.time,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        self.failure_threshold = failure_threshold
        self.cooldown = cooldown
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._cooldown_until: Optional[float] = None
        self._last_failure_at: Optional[float] = None

    def record_outcome(self, intent: IntentType, success: bool) -> None:
        """
        Record the outcome of a finished request.

        Args:
            intent: The request's intent; non-mutating intents are ignored
            success: Whether the request succeeded
        """
        if not intent.is_mutating:
            return

        with self._lock:
            if success:
                self._failures = 0
                return

            now = self._clock()
            self._failures += 1
            self._last_failure_at = now

            if self._failures >= self.failure_threshold and self._cooldown_until is None:
                self._cooldown_until = now + self.cooldown.total_seconds()
                logger.warning(
                    f"🧊 {self._failures} consecutive failures; mutating requests paused "
                    f"for {self.cooldown.total_seconds() / 60:.0f} minutes"
                )

    def _expire_locked(self, now: float) -> None:
        if self._cooldown_until is not None and now >= self._cooldown_until:
            logger.info("Cooldown expired; failure counter reset")
            self._cooldown_until = None
            self._failures = 0

    def is_in_cooldown(self) -> bool:
        with self._lock:
            self._expire_locked(self._clock())
            return self._cooldown_until is not None

    def cooldown_remaining(self) -> float:
        """Seconds until the cooldown ends (0.0 when not in cooldown)."""
        with self._lock:
            now = self._clock()
            self._expire_locked(now)
            if self._cooldown_until is None:
                return 0.0
            return max(0.0, self._cooldown_until - now)

    def snapshot(self) -> ErrorWindow:
        with self._lock:
            self._expire_locked(self._clock())
            return ErrorWindow(
                consecutive_failures=self._failures,
                cooldown_until=self._cooldown_until,
                last_failure_at=self._last_failure_at,
            )

    def reset(self) -> None:
        with self._lock:
            self._failures = 0
            self._cooldown_until = None
            self._last_failure_at = None


_error_tracker = ErrorTracker()


def get_error_tracker() -> ErrorTracker:
    """Get the process-wide tracker."""
    return _error_tracker
