"""
=============================================================================
THREAD POOL
=============================================================================

Worker threads that pull connection-handling tasks off a bounded queue.

Serving a request here is blocking I/O from start to finish: an existence
check, a stat(), then a read()/sendall() loop over the file. Threads are
the natural fit. While one worker sits in sendall() waiting for a slow
client, the others keep serving.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept loop ──submit()──► [Task][Task][Task] ...  (queue.Queue)    │
    │                                   │                                  │
    │                                   │ get()                            │
    │                                   ▼                                  │
    │          ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐         │
    │          │ Worker 0 │ │ Worker 1 │ │ Worker 2 │ │ Worker 3 │  ...    │
    │          └──────────┘ └──────────┘ └──────────┘ └──────────┘         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Workers share nothing mutable except the queue. Everything a request
needs (config, encoding priority, variant table) is immutable.

=============================================================================
SHUTDOWN: THE POISON PILL
=============================================================================

    pool.shutdown()
        └─ queue.put(None) once per worker
        └─ a worker that gets None leaves its loop

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred function call.

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        kwargs: Keyword arguments for the function.
        submitted_at: Time the task was queued.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Daemon thread running tasks from the shared queue.

    A task that raises is logged with its traceback and counted as failed;
    the worker itself keeps going.
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        idle_timeout: float = 60.0
    ):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            if task is None:
                self.task_queue.task_done()
                break

            try:
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
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Bounded pool of worker threads.

        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True)

    Starts with min_workers threads and adds one more (up to max_workers)
    whenever a task is queued while every worker is busy. submit() with
    block=False returns False on a full queue; the server answers such
    connections with 503.
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        idle_timeout: float = 60.0
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        """Create and start min_workers threads."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")

        with self._lock:
            for _ in range(self.min_workers):
                self._spawn_worker()

        self._shutdown = False
        self._started = True

    def _spawn_worker(self) -> Worker:
        # Caller holds self._lock.
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None
    ) -> bool:
        """
        Queue a call to func(*args, **kwargs).

        Returns:
            True if the task was queued, False if the queue was full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker if every worker is busy and tasks are waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return

            busy_count = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy_count == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._spawn_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting tasks and stop the workers.

        Args:
            wait: Let queued tasks finish first.
            timeout: Upper bound on that wait, in seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while not self._task_queue.empty():
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")

    @property
    def active_workers(self) -> int:
        return sum(1 for w in self._workers if w.state != WorkerState.STOPPED)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        """Tasks currently waiting in the queue."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for the shutdown log line."""
        return {
            "workers": {
                "total": len(self._workers),
                "active": self.active_workers,
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
