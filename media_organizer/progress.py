"""Throttled progress logging for worker pools."""

import queue
import threading
from typing import Optional
import logging

logger = logging.getLogger(__name__)

_CLOSE = object()


class ProgressReporter:
    """
    Logs progress of one phase in fixed percentage steps.

    Snapshots are published without blocking into a bounded buffer read by
    a separate thread. When the buffer is full a snapshot is dropped; the
    next one supersedes it anyway. Nothing is logged until the total is
    final, so percentages never move backwards while work is still being
    discovered.
    """

    def __init__(self, label: str, step: float = 20.0, buffer_size: int = 100):
        self.label = label
        self.step = step
        self._snapshots: "queue.Queue" = queue.Queue(maxsize=buffer_size)
        self._thread: Optional[threading.Thread] = None
        self._last_reported = 0.0
        self._reported_complete = False

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name=f"progress-{self.label}", daemon=True
        )
        self._thread.start()

    def publish(self, processed: int, total: int, sealed: bool = False) -> None:
        """Offer a snapshot; dropped if the reporter is behind."""
        try:
            self._snapshots.put_nowait((processed, total, sealed))
        except queue.Full:
            pass

    def close(self, processed: int, total: int) -> None:
        """Flush a final snapshot and wait for the reporter thread."""
        if self._thread is None:
            return
        self._snapshots.put((processed, total, True))
        self._snapshots.put(_CLOSE)
        self._thread.join()
        self._thread = None

    def _run(self) -> None:
        while True:
            item = self._snapshots.get()
            if item is _CLOSE:
                return
            self._report(*item)

    def _report(self, processed: int, total: int, sealed: bool) -> None:
        if not sealed or total == 0 or self._reported_complete:
            return

        percentage = processed / total * 100
        if percentage >= self._last_reported + self.step or processed == total:
            logger.info(f"    {self.label}: processed {processed}/{total} files ({percentage:.0f}%)")
            self._last_reported = percentage - (percentage % self.step)
            self._reported_complete = processed == total
