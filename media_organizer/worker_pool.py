"""Bounded thread pool used by the scanning and path-resolution phases."""

import os
import queue
import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar
import logging

from .cancellation import CancellationToken
from .progress import ProgressReporter

logger = logging.getLogger(__name__)

T = TypeVar('T')

POLL_INTERVAL = 0.05


def default_worker_count() -> int:
    return (os.cpu_count() or 1) * 2


class WorkerPool(Generic[T]):
    """
    Runs ``worker_func`` over queued jobs on a fixed set of threads.

    - The job queue is bounded: ``enqueue`` blocks while it is full.
    - Only the first exception raised by a job is kept; after it the pool
      hands out no new work. Jobs already running are left to finish.
    - Every enqueue and every dequeue first checks the cancellation token.
    - Non-``None`` return values of ``worker_func`` are collected as results.

    Usage::

        pool = WorkerPool(func, token)
        pool.start()
        for job in jobs:
            if not pool.enqueue(job):
                break
        pool.stop()
        pool.raise_error()
    """

    def __init__(
        self,
        worker_func: Callable[[T], Any],
        token: CancellationToken,
        num_workers: Optional[int] = None,
        queue_size: int = 100,
        progress: Optional[ProgressReporter] = None,
        name: str = "pool",
    ):
        self.worker_func = worker_func
        self.token = token
        self.num_workers = num_workers or default_worker_count()
        self.name = name
        self.progress = progress

        self._jobs: "queue.Queue[T]" = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._halted = threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._results: List[Any] = []
        self._threads: List[threading.Thread] = []
        self._total = 0
        self._processed = 0
        self._sealed = False

    @property
    def total(self) -> int:
        return self._total

    @property
    def processed(self) -> int:
        return self._processed

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def results(self) -> List[Any]:
        return list(self._results)

    @property
    def accepting(self) -> bool:
        return not (self.token.cancelled or self._halted.is_set() or self._closed.is_set())

    def start(self) -> None:
        if self.progress is not None:
            self.progress.start()

        for i in range(self.num_workers):
            thread = threading.Thread(
                target=self._work, name=f"{self.name}-{i}", daemon=True
            )
            thread.start()
            self._threads.append(thread)

        logger.debug(f"Started {self.num_workers} workers for {self.name}")

    def enqueue(self, job: T) -> bool:
        """
        Queue a job, blocking while the queue is full.

        Returns:
            False if the job was not queued because the pool was cancelled,
            halted by an error or closed.
        """
        while True:
            if not self.accepting:
                return False
            try:
                self._jobs.put(job, timeout=POLL_INTERVAL)
                break
            except queue.Full:
                continue

        with self._lock:
            self._total += 1
        return True

    def report_error(self, error: BaseException) -> None:
        """Keep ``error`` if it is the first one and stop handing out work."""
        with self._lock:
            if self._error is None:
                self._error = error
            else:
                logger.debug(f"{self.name}: discarding subsequent error: {error}")
        self._halted.set()

    def seal(self) -> None:
        """Mark the total as final so progress percentages become meaningful."""
        self._sealed = True
        self._publish_progress()

    def stop(self) -> None:
        """Close the queue, join the workers and flush progress."""
        self._sealed = True
        self._closed.set()
        for thread in self._threads:
            thread.join()
        self._threads = []

        if self.progress is not None:
            self.progress.close(self._processed, self._total)

        logger.debug(f"{self.name}: {self._processed}/{self._total} jobs processed")

    def raise_error(self) -> None:
        if self._error is not None:
            raise self._error

    def _next_job(self):
        while True:
            if self.token.cancelled or self._halted.is_set():
                return None, False
            # jobs are only queued before close, so an empty queue seen after
            # close means there is nothing left
            closed = self._closed.is_set()
            try:
                return self._jobs.get(timeout=POLL_INTERVAL), True
            except queue.Empty:
                if closed:
                    return None, False

    def _work(self) -> None:
        while True:
            job, ok = self._next_job()
            if not ok:
                return

            try:
                result = self.worker_func(job)
            except Exception as e:
                self.report_error(e)
            else:
                if result is not None:
                    with self._lock:
                        self._results.append(result)

            with self._lock:
                self._processed += 1
            self._publish_progress()

    def _publish_progress(self) -> None:
        if self.progress is not None:
            self.progress.publish(self._processed, self._total, self._sealed)
