"""
Progress notification channel for long-running training runs.

The orchestrator publishes human-readable status strings through a
ProgressNotifier. Delivery is best-effort: an unset callback is a valid
no-op, and a failing callback is logged and ignored. AsyncProgressRelay moves
delivery onto its own thread so a slow observer never stalls training.
"""

import logging
import queue
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], object]

_STOP = object()


class ProgressNotifier:
    """Invoke an optional callback with status messages, never raising."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self.callback = callback

    def notify(self, message: str) -> None:
        logger.info("Progress: %s", message)
        if self.callback is None:
            return
        try:
            self.callback(message)
        except Exception as e:
            logger.warning("Progress callback failed (ignored): %s", e)


class AsyncProgressRelay:
    """
    Queue messages and deliver them to `callback` on a background thread.

    Use as a context manager (or call `close()`) so pending messages are
    flushed before the relay is discarded.
    """

    def __init__(self, callback: ProgressCallback) -> None:
        self.callback = callback
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._worker = threading.Thread(
            target=self._drain, name="progress-relay", daemon=True
        )
        self._worker.start()

    def __call__(self, message: str) -> None:
        self._queue.put(message)

    def close(self, timeout: float | None = None) -> None:
        self._queue.put(_STOP)
        self._worker.join(timeout)

    def __enter__(self) -> "AsyncProgressRelay":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                self.callback(str(item))
            except Exception as e:
                logger.warning("Progress observer failed (ignored): %s", e)
