# event_framework/core/errors.py
from __future__ import annotations


class EventFrameworkError(Exception):
    """Base class for errors raised synchronously by the public API."""


class InvalidArgument(EventFrameworkError, ValueError):
    """Event name missing, empty or not a string."""


class TypeMismatch(EventFrameworkError, TypeError):
    """Object passed where a Subscribable was required."""


class MissingHandler(EventFrameworkError, TypeError):
    """No callable supplied to an API that needs one."""


def require_event(event) -> str:
    if not isinstance(event, str) or not event:
        raise InvalidArgument(f"event must be a non-empty string, got {event!r}")
    return event


def require_callable(fn, what: str = "handler"):
    if fn is None or not callable(fn):
        raise MissingHandler(f"{what} must be callable, got {fn!r}")
    return fn
