from __future__ import annotations
import threading
import time
from typing import Callable, List, Optional
import structlog

from event_framework.app.config import DemoConfig
from event_framework.core import loop
from event_framework.core.subscribable import Subscribable
from event_framework.core.worker import Worker

log = structlog.get_logger()


class Server(Subscribable):
    """Publishes a numbered message every interval."""
    def __init__(self, cfg: DemoConfig):
        super().__init__()
        self.cfg = cfg

    def tick_forever(self, ready: threading.Event) -> None:
        ready.wait()
        i = 0
        while self.cfg.count is None or i < self.cfg.count:
            time.sleep(self.cfg.interval_s)
            i += 1
            self.trigger(self.cfg.event, f"{self.cfg.message} {i}")


class Client(Subscribable):
    """
    Created on the calling thread, so its handlers run on the global loop
    even though it subscribes from another worker.
    """
    def __init__(self, expected: Optional[int] = None, on_message: Optional[Callable[[str], None]] = None):
        super().__init__()
        self.received: List[str] = []
        self.done = threading.Event()
        self._expected = expected
        self._on_message = on_message

    def on_tick(self, server: Server, message: str) -> None:
        self.received.append(message)
        log.info("demo.message", message=message, thread=threading.current_thread().name)
        if self._on_message:
            self._on_message(message)
        if self._expected is not None and len(self.received) >= self._expected:
            self.done.set()


def run_demo(cfg: Optional[DemoConfig] = None, on_message: Optional[Callable[[str], None]] = None) -> Client:
    """
    Server ticks on one worker, client subscribes from another, and the
    client's handler runs on the global loop. Blocks forever when
    ``cfg.count`` is None, otherwise until every message has arrived.
    """
    cfg = cfg or DemoConfig()
    server = Server(cfg)
    client = Client(expected=cfg.count, on_message=on_message)
    subscribed = threading.Event()

    def subscribe() -> None:
        client.listen_to(server, cfg.event, client.on_tick)
        subscribed.set()

    if cfg.count is not None:
        loop.start()
    Worker(server.tick_forever, subscribed, name="ef-ticker")
    Worker(subscribe, name="ef-listener")
    log.info("demo.start", event_name=cfg.event, interval_s=cfg.interval_s, count=cfg.count)

    if cfg.count is None:
        loop.run()
    else:
        client.done.wait()
        log.info("demo.stop", received=len(client.received))
    return client
