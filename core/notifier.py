"""
Status Notifier

Fire-and-forget progress events ("reading src/game.html...") for the chat
surface. Publishing never blocks the orchestrator and a failing sink never
breaks a request.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusEvent:
    """One progress event."""
    category: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


def _log_sink(event: StatusEvent) -> None:
    logger.debug(f"📣 [{event.category}] {event.message} {event.data}")


_STOP = object()


class StatusNotifier:
    """
    Queue-backed event publisher with a daemon delivery thread.

    Args:
        sink: Callable receiving each StatusEvent (defaults to a debug log)
        max_queue: Pending events kept before new ones are dropped
    """

    def __init__(self, sink: Optional[Callable[[StatusEvent], None]] = None, max_queue: int = 256):
        self.sink = sink or _log_sink
        self.dropped = 0
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=max_queue)
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="status-notifier", daemon=True)
        self._worker.start()

    def publish(self, category: str, message: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Enqueue an event without blocking.

        Returns:
            True if the event was queued, False if it was dropped
        """
        if self._closed:
            return False

        event = StatusEvent(category=category, message=message, data=dict(data or {}))
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1
            logger.warning(f"⚠️  Status queue full; dropped {category} event")
            return False
        return True

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self.sink(event)
            except Exception as e:
                logger.error(f"❌ Status sink failed for {event.category}: {e}")
            finally:
                self._queue.task_done()

    def flush(self, timeout: float = 2.0) -> bool:
        """
        Wait until every queued event has been delivered.

        Returns:
            True if the queue drained within the timeout
        """
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def close(self, timeout: float = 2.0) -> None:
        """Deliver what is queued, then stop the worker."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join(timeout)
