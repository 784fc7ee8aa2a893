"""
Bounded worker pool for file tasks.

A fixed number of worker threads execute tasks; a bounded FIFO backlog
holds tasks waiting for a free worker. Once both are full, submissions are
rejected and the task is dropped. A dropped file stays untouched on disk
and is only seen again on a new creation event or a restart scan.
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, List, Optional

from loguru import logger

from app.models.schemas import FileTask, PoolConfiguration
from domains.file_ingest.errors import TaskInterruptedError, TaskRejectedError


@dataclass(slots=True)
class PoolStats:
    """Point-in-time counters of a worker pool."""

    active: int
    queued: int
    completed: int
    failed: int
    rejected: int
    cancelled: int


class WorkerPool:
    """Runs ``handler(task)`` on up to ``max_active_tasks`` threads."""

    def __init__(
        self,
        handler: Callable[[FileTask], Any],
        max_active_tasks: int = 5,
        max_queued_tasks: int = 10,
        stop_event: Optional[threading.Event] = None,
        name: str = "ingest-worker",
    ):
        """
        Initialize worker pool.

        Args:
            handler: Callable processing one task
            max_active_tasks: Number of concurrent execution slots
            max_queued_tasks: Backlog capacity, 0 for none
            stop_event: Set on shutdown so running tasks can stop early
            name: Thread name prefix
        """
        if max_active_tasks < 1:
            raise ValueError("max_active_tasks must be at least 1")
        if max_queued_tasks < 0:
            raise ValueError("max_queued_tasks must not be negative")

        self.handler = handler
        self.max_active_tasks = max_active_tasks
        self.max_queued_tasks = max_queued_tasks
        self.stop_event = stop_event or threading.Event()
        self.name = name

        self._cond = threading.Condition()
        self._backlog: Deque[FileTask] = deque()
        self._workers: List[threading.Thread] = []
        self._retired: List[threading.Thread] = []
        self._start_lock = threading.Lock()
        self._accepting = False
        self._running = 0

        self._completed = 0
        self._failed = 0
        self._rejected = 0
        self._cancelled = 0

    @classmethod
    def from_config(cls, handler: Callable[[FileTask], Any], config: PoolConfiguration, **kwargs) -> "WorkerPool":
        return cls(
            handler,
            max_active_tasks=config.max_active_tasks,
            max_queued_tasks=config.max_queued_tasks,
            **kwargs,
        )

    @property
    def capacity(self) -> int:
        """Number of tasks that can be in flight (running or queued) at once."""
        return self.max_active_tasks + self.max_queued_tasks

    def start(self):
        """
        Start the worker threads and accept submissions.

        Workers left running by ``stop(wait=False)`` are joined first, so a
        restarted pool never runs more than ``max_active_tasks`` tasks and
        their tasks still see the stop event.
        """
        with self._start_lock:
            with self._cond:
                if self._accepting:
                    return
                retired, self._retired = self._retired, []

            pending = [worker for worker in retired if worker.is_alive()]
            if pending:
                logger.info(f"Waiting for {len(pending)} workers of the previous run to finish")
            for worker in pending:
                worker.join()

            with self._cond:
                self.stop_event.clear()
                self._accepting = True
                self._workers = [
                    threading.Thread(target=self._worker_loop, name=f"{self.name}-{i}", daemon=True)
                    for i in range(self.max_active_tasks)
                ]
                for worker in self._workers:
                    worker.start()

        logger.info(
            f"Worker pool started: {self.max_active_tasks} active, {self.max_queued_tasks} queued"
        )

    def execute(self, task: FileTask) -> None:
        """
        Schedule ``task`` or raise.

        Raises:
            TaskRejectedError: pool stopped, or slots and backlog are all taken
        """
        with self._cond:
            if not self._accepting:
                self._rejected += 1
                raise TaskRejectedError(f"Worker pool is not accepting work, {task.path} dropped")

            if self._running + len(self._backlog) >= self.capacity:
                self._rejected += 1
                raise TaskRejectedError(
                    f"The queue of tasks has filled, {task.path} was unable to be processed"
                )

            self._backlog.append(task)
            self._cond.notify()

    def submit(self, task: FileTask) -> bool:
        """
        Schedule ``task``; a rejection is logged, never raised.

        Returns:
            True if the task was accepted
        """
        try:
            self.execute(task)
            return True

        except TaskRejectedError as e:
            logger.error(str(e))
            return False

    def _worker_loop(self):
        while True:
            with self._cond:
                while not self._backlog and self._accepting:
                    self._cond.wait()
                if not self._backlog:
                    return
                task = self._backlog.popleft()
                self._running += 1

            succeeded = False
            try:
                self.handler(task)
                succeeded = True

            except TaskInterruptedError as e:
                logger.warning(str(e))

            except Exception as e:
                logger.opt(exception=e).error(f"Failure in executing task for {task.path}")

            finally:
                with self._cond:
                    self._running -= 1
                    if succeeded:
                        self._completed += 1
                    else:
                        self._failed += 1
                    self._cond.notify_all()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no task is running or queued.

        Returns:
            False if the timeout expired first
        """
        with self._cond:
            return self._cond.wait_for(lambda: not self._backlog and self._running == 0, timeout)

    def stats(self) -> PoolStats:
        with self._cond:
            return PoolStats(
                active=self._running,
                queued=len(self._backlog),
                completed=self._completed,
                failed=self._failed,
                rejected=self._rejected,
                cancelled=self._cancelled,
            )

    def stop(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting work, drop the backlog and signal running tasks.

        Args:
            wait: Join the worker threads
            timeout: Per-thread join timeout
        """
        with self._cond:
            if not self._accepting and not self._workers:
                return

            self._accepting = False
            dropped = list(self._backlog)
            self._backlog.clear()
            self._cancelled += len(dropped)
            workers = self._workers
            self._retired.extend(workers)
            self._workers = []
            self.stop_event.set()
            self._cond.notify_all()

        if dropped:
            logger.warning(
                f"Dropped {len(dropped)} queued tasks: {', '.join(task.path for task in dropped)}"
            )

        if wait:
            for worker in workers:
                worker.join(timeout)

        logger.info("Worker pool stopped")

    def __enter__(self) -> "WorkerPool":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
