# event_framework/core/worker.py
from __future__ import annotations
import itertools
import threading
from queue import Queue
from typing import Any, Callable, List, Optional, Set, Union
import structlog

from event_framework.app.config import WorkerConfig
from event_framework.core.errors import require_callable
from event_framework.core.utils.queueing import safe_put

log = structlog.get_logger()

Task = Callable[..., Any]
Context = Union["Worker", threading.Thread]

# Live-worker registry: workers whose thread has started and not yet exited.
_registry_lock = threading.Lock()
_live: Set["Worker"] = set()
_local = threading.local()
_seq = itertools.count(1)


def _describe(task: Task) -> str:
    return getattr(task, "__qualname__", None) or repr(task)


class Worker:
    """
    Execution context with its own daemon thread and FIFO task queue.
    - The optional initial task runs first, on the worker's thread.
    - Queued tasks then run one at a time, in submission order, forever.
    - A task that raises is logged and re-raised; the thread ends there and
      the worker drops out of the live registry.
    """
    def __init__(
        self,
        initial_task: Optional[Task] = None,
        *args: Any,
        config: Optional[WorkerConfig] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ):
        if initial_task is not None:
            require_callable(initial_task, "initial_task")
        self.cfg = config or WorkerConfig()
        self.name = name or f"{self.cfg.name_prefix}-{next(_seq)}"
        self._q: Queue = Queue(maxsize=max(0, self.cfg.maxsize))
        self._thr = threading.Thread(
            target=self._loop,
            args=(initial_task, args, kwargs),
            name=self.name,
            daemon=self.cfg.daemon,
        )

        # live from the moment the thread is started
        with _registry_lock:
            _live.add(self)
        try:
            self._thr.start()
        except BaseException:
            with _registry_lock:
                _live.discard(self)
            raise
        log.debug("worker.start", worker=self.name, maxsize=self.cfg.maxsize)

    @classmethod
    def create(cls, initial_task: Optional[Task] = None, *args: Any, **kwargs: Any) -> "Worker":
        return cls(initial_task, *args, **kwargs)

    @classmethod
    def instances(cls) -> List["Worker"]:
        with _registry_lock:
            return [w for w in _live if isinstance(w, cls)]

    def submit(self, task: Task, *args: Any, **kwargs: Any) -> None:
        """Queue ``task(*args, **kwargs)`` to run on this worker. Never blocks."""
        require_callable(task, "task")
        dropped = safe_put(self._q, (task, args, kwargs))
        if dropped is not None:
            log.warning(
                "worker.queue.overflow",
                worker=self.name,
                maxsize=self.cfg.maxsize,
                dropped=_describe(dropped[0]),
            )

    @property
    def ident(self) -> Optional[int]:
        return self._thr.ident

    @property
    def thread(self) -> threading.Thread:
        return self._thr

    def is_current(self) -> bool:
        return threading.current_thread() is self._thr

    def pending(self) -> int:
        """Approximate number of queued tasks."""
        return self._q.qsize()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker's thread to exit. Returns True if it did."""
        self._thr.join(timeout)
        return not self._thr.is_alive()

    def __repr__(self) -> str:
        state = "live" if is_live(self) else "dead"
        return f"<Worker {self.name} {state} pending={self.pending()}>"

    # -------- internal --------

    def _loop(self, initial_task: Optional[Task], args, kwargs) -> None:
        _local.worker = self
        try:
            if initial_task is not None:
                self._run(initial_task, args, kwargs)
            while True:
                task, t_args, t_kwargs = self._q.get()
                self._run(task, t_args, t_kwargs)
        finally:
            with _registry_lock:
                _live.discard(self)
            log.debug("worker.exit", worker=self.name, pending=self._q.qsize())

    def _run(self, task: Task, args, kwargs) -> None:
        try:
            task(*args, **kwargs)
        except Exception as e:
            log.error("worker.task.error", worker=self.name, task=_describe(task), err=str(e))
            raise


def is_live(worker: Any) -> bool:
    """True iff ``worker`` is a Worker whose thread has started and not exited."""
    if not isinstance(worker, Worker):
        return False
    with _registry_lock:
        return worker in _live


def current_worker() -> Optional[Worker]:
    """The live Worker running the calling thread, if any."""
    w = getattr(_local, "worker", None)
    if w is not None and is_live(w):
        return w
    return None


def current_context() -> Context:
    """The calling thread's execution context: its Worker, else the bare thread."""
    return current_worker() or threading.current_thread()
