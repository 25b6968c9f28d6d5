"""
listeners.py

Explicit event-type -> handler registration.

Handlers are registered once at startup into a ListenerTable, which the
application passes to whatever dispatches events. A handler registered for
a base event class also receives its subclasses.
"""

import threading
from typing import Any, Callable, Dict, List, Type

from pagecontract.events import Event
from pagecontract.observability import get_logger

logger = get_logger(__name__)

Handler = Callable[[Event], Any]


class ListenerTable:
    """An ordered mapping from event class to handler functions."""

    def __init__(self):
        self._handlers: Dict[Type[Event], List[Handler]] = {}
        self._lock = threading.Lock()

    def register(self, event_type: Type[Event], handler: Handler) -> None:
        """Add a handler for an event class. Order of registration is kept."""
        if not (isinstance(event_type, type) and issubclass(event_type, Event)):
            raise TypeError(f"event_type must be an Event subclass, got {event_type!r}")
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {type(handler).__name__}")
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("listener_registered", event_type=event_type.event_type)

    def handlers_for(self, event_type: Type[Event]) -> List[Handler]:
        """
        Handlers that receive events of ``event_type``.

        Follows the class's method resolution order, most specific first,
        then registration order within one class.
        """
        with self._lock:
            snapshot = {k: list(v) for k, v in self._handlers.items()}
        handlers: List[Handler] = []
        for cls in event_type.__mro__:
            handlers.extend(snapshot.get(cls, ()))
        return handlers

    def dispatch(self, event: Event) -> List[Any]:
        """Call every matching handler with ``event`` and collect the results."""
        handlers = self.handlers_for(type(event))
        logger.debug("event_dispatched", event_type=event.event_type, handlers=len(handlers))
        return [handler(event) for handler in handlers]

    def event_types(self) -> List[Type[Event]]:
        with self._lock:
            return list(self._handlers)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._handlers.values())
