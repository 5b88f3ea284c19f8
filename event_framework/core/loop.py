# event_framework/core/loop.py
"""
Process-wide "main" worker.

Subscribers whose home context is not a live Worker get their handlers
delivered here, if a loop has been started. The singleton lives for the
whole process; ``reset()`` exists so tests can return to the no-loop state.
"""
from __future__ import annotations
import threading
from typing import Optional
import structlog

from event_framework.app.config import WorkerConfig
from event_framework.core.worker import Worker

log = structlog.get_logger()

_lock = threading.Lock()
_worker: Optional[Worker] = None


def start(config: Optional[WorkerConfig] = None) -> Worker:
    """Create the main worker and install it as the singleton. Does not block."""
    global _worker
    w = Worker(config=config or WorkerConfig(name_prefix="ef-main"))
    with _lock:
        prev, _worker = _worker, w
    if prev is not None:
        log.info("loop.replace", prev=prev.name, worker=w.name)
    return w


def run(config: Optional[WorkerConfig] = None) -> None:
    """Start the main worker and block the caller until its thread exits."""
    w = start(config)
    log.info("loop.run", worker=w.name)
    w.join()
    log.info("loop.exit", worker=w.name)


def current() -> Optional[Worker]:
    with _lock:
        return _worker


def reset() -> None:
    """Forget the singleton. The old worker keeps running until process exit."""
    global _worker
    with _lock:
        prev, _worker = _worker, None
    if prev is not None:
        log.debug("loop.reset", prev=prev.name)
