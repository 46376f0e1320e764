"""
Event Dispatcher

Process-wide publish/subscribe hub. Listeners register for an event kind and
are invoked synchronously, on the publishing thread, in registration order.
Listeners are independent extensions: one that raises is logged and skipped,
and delivery continues with the next one.

The subscription table is copy-on-write: ``register`` swaps in a new tuple
under a lock, ``notify`` iterates whatever tuple it read, so publishing
never blocks on registration.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Tuple

from infrastructure.monitoring.metrics import record_event_published, record_listener_failure

logger = logging.getLogger(__name__)

EventListener = Callable[[Any], None]


def _kind_label(event_kind: Hashable) -> str:
    return event_kind.value if isinstance(event_kind, Enum) else str(event_kind)


class EventDispatcher:
    """Synchronous, failure-isolating event fan-out."""

    def __init__(self):
        self._listeners: Dict[Hashable, Tuple[EventListener, ...]] = {}
        self._lock = threading.Lock()

    def register(self, event_kind: Hashable, listener: EventListener) -> None:
        """
        Subscribe a listener. Registering the same listener twice makes it
        run twice.
        """
        if not callable(listener):
            raise TypeError(f"Listener for {_kind_label(event_kind)} must be callable")
        with self._lock:
            current = self._listeners.get(event_kind, ())
            self._listeners[event_kind] = current + (listener,)
        logger.debug(f"Registered listener {listener!r} for {_kind_label(event_kind)}")

    def listeners(self, event_kind: Hashable) -> Tuple[EventListener, ...]:
        return self._listeners.get(event_kind, ())

    def notify(self, event_kind: Hashable, payload: Any) -> None:
        """Invoke every listener of ``event_kind`` with ``payload``."""
        kind = _kind_label(event_kind)
        record_event_published(kind)
        for listener in self._listeners.get(event_kind, ()):
            try:
                listener(payload)
            except Exception:
                record_listener_failure(kind)
                logger.exception(f"Listener {listener!r} failed handling {kind}")
