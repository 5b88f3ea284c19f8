# event_framework/core/subscribable.py
from __future__ import annotations
import itertools
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Tuple
import structlog

from event_framework.core import loop
from event_framework.core.errors import TypeMismatch, require_callable, require_event
from event_framework.core.worker import Context, Worker, current_context, is_live

log = structlog.get_logger()

# handler(publisher, *args, **kwargs)
Handler = Callable[..., Any]

_attach_lock = threading.Lock()
_seq = itertools.count(1)


@dataclass(frozen=True, eq=False)
class Subscription:
    """One observer -> observable binding. Objects compare by identity."""
    observer: "Subscribable"
    observable: "Subscribable"
    event: str
    handler: Handler

    def same(self, observer: "Subscribable", event: str, handler: Handler) -> bool:
        return self.observer is observer and self.event == event and self.handler == handler

    def matches(
        self,
        observable: Optional["Subscribable"] = None,
        event: Optional[str] = None,
        handler: Optional[Handler] = None,
    ) -> bool:
        return (
            (observable is None or self.observable is observable)
            and (event is None or self.event == event)
            and (handler is None or self.handler == handler)
        )


def _attach(obj: "Subscribable") -> None:
    with _attach_lock:
        if getattr(obj, "_ef_lock", None) is not None:
            return
        obj._ef_seq = next(_seq)
        obj._ef_home = current_context()
        obj._ef_observers = []
        obj._ef_observables = []
        obj._ef_lock = threading.RLock()


def attach_subscribable(entity: "Subscribable") -> "Subscribable":
    """
    Initialise the publish/subscribe state of ``entity`` with the calling
    thread as its home context. For hosts whose ``__init__`` does not chain
    to ``Subscribable.__init__``. Idempotent.
    """
    if not isinstance(entity, Subscribable):
        raise TypeMismatch(f"{type(entity).__name__} is not a Subscribable")
    _attach(entity)
    return entity


@contextmanager
def _locked(*objs: "Subscribable") -> Iterator[None]:
    # Always acquire in creation order so two objects subscribing to each
    # other concurrently cannot deadlock.
    unique = {id(o): o for o in objs}.values()
    with ExitStack() as stack:
        for o in sorted(unique, key=lambda o: o._ef_seq):
            stack.enter_context(o._ef_lock)
        yield


class Subscribable:
    """
    Publish/subscribe capability bound to a home execution context.

    Handlers registered by an object run on that object's home context: its
    Worker if live, else the global loop's worker if one was started, else
    synchronously inside ``trigger``.
    """
    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        _attach(self)

    def _ensure_attached(self) -> None:
        if getattr(self, "_ef_lock", None) is None:
            _attach(self)

    # -------- queries --------

    def home_context(self) -> Context:
        self._ensure_attached()
        with self._ef_lock:
            return self._ef_home

    def observers(self) -> Tuple[Subscription, ...]:
        """Subscriptions where this object is the publisher."""
        self._ensure_attached()
        with self._ef_lock:
            return tuple(self._ef_observers)

    def observables(self) -> Tuple[Subscription, ...]:
        """Subscriptions this object holds as a listener."""
        self._ensure_attached()
        with self._ef_lock:
            return tuple(self._ef_observables)

    # -------- publish --------

    def trigger(self, event: str, *args: Any, **kwargs: Any) -> int:
        """
        Deliver ``event`` to every handler registered for it at call time.
        Handlers receive ``(self, *args, **kwargs)``. Returns the number of
        handlers dispatched; never waits for queued handlers to run.
        """
        require_event(event)
        self._ensure_attached()
        with self._ef_lock:
            observers = list(self._ef_observers)

        count = 0
        for sub in observers:
            if sub.event != event:
                continue
            target = _delivery_target(sub.observer)
            if target is not None:
                target.submit(sub.handler, self, *args, **kwargs)
            else:
                sub.handler(self, *args, **kwargs)
            count += 1
        log.debug("subscribable.trigger", publisher=type(self).__name__, event_name=event, handlers=count)
        return count

    # -------- subscribe --------

    def listen_to(self, observable: "Subscribable", event: str, handler: Handler) -> Handler:
        if not isinstance(observable, Subscribable):
            raise TypeMismatch(f"{type(observable).__name__} is not a Subscribable")
        require_event(event)
        require_callable(handler)
        self._ensure_attached()
        observable._ensure_attached()

        with _locked(self, observable):
            self._ef_observables.append(Subscription(self, observable, event, handler))
            if observable is self:
                self._ef_observers.append(Subscription(self, self, event, handler))
            else:
                observable._registrate(self, event, handler)
        log.debug("subscribable.listen", observer=type(self).__name__, observable=type(observable).__name__, event_name=event)
        return handler

    def on(self, event: str, handler: Handler) -> Handler:
        require_event(event)
        require_callable(handler)
        return self.listen_to(self, event, handler)

    # -------- unsubscribe --------

    def stop_listening(
        self,
        observable: Optional["Subscribable"] = None,
        event: Optional[str] = None,
        handler: Optional[Handler] = None,
    ) -> int:
        """Remove every subscription matching the given filters (None = any)."""
        self._ensure_attached()
        while True:
            with self._ef_lock:
                targets = {
                    id(s.observable): s.observable
                    for s in self._ef_observables
                    if s.matches(observable, event, handler)
                }

            with _locked(self, *targets.values()):
                keep: List[Subscription] = []
                drop: List[Subscription] = []
                for s in self._ef_observables:
                    (drop if s.matches(observable, event, handler) else keep).append(s)

                # a matching edge to an object we did not lock appeared meanwhile
                if any(s.observable is not self and id(s.observable) not in targets for s in drop):
                    continue

                for s in drop:
                    if s.observable is self:
                        self._ef_observers = [
                            o for o in self._ef_observers if not o.same(self, s.event, s.handler)
                        ]
                    else:
                        s.observable._unregistrate(self, s.event, s.handler)
                self._ef_observables = keep

            if drop:
                log.debug("subscribable.stop_listening", observer=type(self).__name__, removed=len(drop))
            return len(drop)

    def off(self, event: Optional[str] = None, handler: Optional[Handler] = None) -> int:
        return self.stop_listening(self, event, handler)

    # -------- context --------

    def move_to(self, context: Context) -> None:
        """Run this object's future incoming handlers on ``context``."""
        self._ensure_attached()
        with self._ef_lock:
            self._ef_home = context

    # -------- collaborator entry points --------

    def _registrate(self, observer: "Subscribable", event: str, handler: Handler) -> None:
        if not isinstance(observer, Subscribable):
            raise TypeMismatch(f"{type(observer).__name__} is not a Subscribable")
        with self._ef_lock:
            self._ef_observers.append(Subscription(observer, self, event, handler))

    def _unregistrate(self, observer: "Subscribable", event: str, handler: Handler) -> None:
        with self._ef_lock:
            self._ef_observers = [
                s for s in self._ef_observers if not s.same(observer, event, handler)
            ]


def _delivery_target(observer: Subscribable) -> Optional[Worker]:
    home = observer.home_context()
    if is_live(home):
        return home
    return loop.current()
