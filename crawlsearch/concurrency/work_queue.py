"""
Fixed-size worker pool with a completion barrier.

Workers are long-lived threads pulling tasks from one shared queue. The
``finish`` barrier waits for every submitted task, including tasks submitted
by other tasks while the barrier is waiting, without stopping the workers.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from ..utils.monitoring import get_monitor

DEFAULT_THREADS = 5

Task = Callable[[], None]


class WorkQueue:
    """
    Pool of worker threads consuming a pending-task queue.
    """

    def __init__(self, threads: Optional[int] = DEFAULT_THREADS, name: str = "worker"):
        self.logger = logging.getLogger(__name__)

        if threads is None or threads < 1:
            self.logger.warning(f"Invalid thread count {threads!r}, using {DEFAULT_THREADS}")
            threads = DEFAULT_THREADS

        self._tasks: Deque[Task] = deque()
        self._queue_lock = threading.Condition()
        self._shutdown = False

        self._pending = 0
        self._pending_lock = threading.Condition()

        self._workers: List[threading.Thread] = []
        for i in range(threads):
            worker = threading.Thread(
                target=self._worker,
                name=f"{name}-{i}",
                daemon=True
            )
            self._workers.append(worker)
            worker.start()

        self.logger.debug(f"Started work queue with {threads} workers")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.join()

    @property
    def size(self) -> int:
        """Number of worker threads."""
        return len(self._workers)

    @property
    def pending(self) -> int:
        """Number of tasks submitted but not yet finished."""
        with self._pending_lock:
            return self._pending

    @property
    def is_shutdown(self) -> bool:
        with self._queue_lock:
            return self._shutdown

    def execute(self, task: Task):
        """
        Queue a task for execution by a worker. Never blocks on the task.

        Raises:
            RuntimeError: if the queue has been shut down
        """
        with self._queue_lock:
            if self._shutdown:
                raise RuntimeError("Cannot execute tasks after shutdown")

            # count before the task becomes visible so finish() cannot miss it
            self._increment_pending()
            self._tasks.append(task)
            self._queue_lock.notify()

    def finish(self):
        """Block until all pending work, including work it spawns, is done."""
        with self._pending_lock:
            while self._pending > 0:
                self._pending_lock.wait()

    def shutdown(self):
        """Stop the workers once the queue is drained and wait for them."""
        with self._queue_lock:
            self._shutdown = True
            self._queue_lock.notify_all()

        for worker in self._workers:
            if worker is not threading.current_thread():
                worker.join()

        self.logger.debug("Work queue shut down")

    def join(self):
        """Wait for pending work, then shut down."""
        self.finish()
        self.shutdown()

    def _increment_pending(self):
        with self._pending_lock:
            self._pending += 1

    def _decrement_pending(self):
        with self._pending_lock:
            self._pending -= 1
            if self._pending <= 0:
                self._pending_lock.notify_all()

    def _worker(self):
        """Worker loop: wait for a task, run it, account for it."""
        while True:
            with self._queue_lock:
                while not self._tasks and not self._shutdown:
                    self._queue_lock.wait()

                if not self._tasks:
                    break

                task = self._tasks.popleft()

            try:
                task()
            except Exception as e:
                self.logger.exception(f"Task failed in {threading.current_thread().name}: {e}")
                monitor = get_monitor()
                if monitor:
                    monitor.record_task_error()
            finally:
                self._decrement_pending()
