# event_framework/core/utils/queueing.py
from __future__ import annotations
from queue import Queue, Full, Empty
from typing import Any, Optional


def safe_put(q: Queue, item) -> Optional[Any]:
    """
    Put without blocking; if the queue is full, drop the oldest item and retry.
    Returns the dropped item (or None) so callers can report the loss.
    Unbounded queues (maxsize <= 0) never drop.
    """
    dropped = None
    while True:
        try:
            q.put_nowait(item)
            return dropped
        except Full:
            try:
                dropped = q.get_nowait()  # drop oldest
            except Empty:
                pass
