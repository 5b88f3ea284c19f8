from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class WorkerConfig:
    # 0 = unbounded; > 0 drops the oldest pending task on overflow
    maxsize: int = 0
    # daemon threads let the process exit while workers idle forever
    daemon: bool = True
    name_prefix: str = "ef-worker"

@dataclass(frozen=True)
class DemoConfig:
    interval_s: float = 1.0
    count: Optional[int] = None  # None = tick forever
    event: str = "tick"
    message: str = "message"
