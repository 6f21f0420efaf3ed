"""Cooperative cancellation shared by every phase of one run."""

import threading
import logging

from .exceptions import OperationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """A one-way flag checked before work is queued or started."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.warning("Cancellation requested, finishing in-flight work")
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, message: str = "operation interrupted") -> None:
        if self._event.is_set():
            raise OperationCancelled(message)
