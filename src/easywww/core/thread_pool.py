"""
=============================================================================
BOUNDED WORKER POOL
=============================================================================

A fixed number of worker threads fed from a bounded queue.

    accept thread ──submit()──► ┌───────────────────┐ ──get()──► Worker-0
                                │  queue (bounded)  │ ──get()──► Worker-1
                                │ [conn][conn][  ]  │ ──get()──► Worker-2
                                └───────────────────┘            ...
                                         │
                                         └── full → submit() returns False
                                                    (caller answers 503)

submit() never blocks: the accept thread must get back to accept()
immediately, so back-pressure is reported to the caller instead.

Shutdown puts one None ("poison pill") per worker on the queue. With
wait=False the pool does not join its workers; connections already
queued or running finish, or time out, on their own.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args, **kwargs)."""
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """Takes tasks off the shared queue until it receives None."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"easywww-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            # A failing task must not take the worker down with it
            elapsed = time.time() - start_time
            logger.exception(f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}")
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    Usage:
        pool = ThreadPool(max_workers=8, queue_size=64)
        pool.start()
        if not pool.submit(handle, conn):
            reject(conn)
        pool.shutdown(wait=False)
    """

    def __init__(self, max_workers: int = 8, queue_size: int = 64):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")

        self.max_workers = max_workers
        self.queue_capacity = queue_size

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        with self._lock:
            if self._started:
                return

            # Fresh queue: pills from an earlier shutdown must not reach new workers
            self._task_queue = queue.Queue(maxsize=self.queue_capacity)

            logger.info(f"Starting thread pool with {self.max_workers} workers")
            for worker_id in range(self.max_workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """
        Queue func(*args, **kwargs) without blocking.

        Returns:
            True if queued; False if the queue is full or the pool is not
            running.
        """
        if not self._started or self._shutdown:
            return False

        try:
            self._task_queue.put_nowait(Task(func=func, args=args, kwargs=kwargs))
        except queue.Full:
            logger.warning(f"Task queue full ({self.queue_capacity}), rejecting task")
            return False
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting tasks and tell every worker to exit.

        Args:
            wait: Join the workers (each for at most `timeout` seconds).
            timeout: Per-worker join timeout when waiting.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return
            self._shutdown = True
            workers = list(self._workers)

        logger.info("Shutting down thread pool...")

        # Pills go behind queued tasks, so those still run. Use a
        # helper thread when the queue is full so shutdown never blocks.
        remaining = len(workers)
        while remaining:
            try:
                self._task_queue.put_nowait(None)
                remaining -= 1
            except queue.Full:
                threading.Thread(
                    target=self._put_pills,
                    args=(self._task_queue, remaining),
                    name="easywww-pool-drain",
                    daemon=True,
                ).start()
                break

        if wait:
            for worker in workers:
                worker.join(timeout)

        with self._lock:
            self._workers.clear()
            self._started = False

        logger.info("Thread pool shutdown complete")

    @staticmethod
    def _put_pills(task_queue: "queue.Queue[Optional[Task]]", count: int):
        for _ in range(count):
            task_queue.put(None)

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def pending(self) -> int:
        """Tasks waiting in the queue."""
        return self._task_queue.qsize()

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self.pending,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
