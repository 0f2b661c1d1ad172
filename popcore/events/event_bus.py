"""In-process pub/sub keyed on the exact event class.

The controller and its systems publish here without knowing who listens.
Delivery is inline, inside the tick that produced the event, so listeners
must return quickly. The event reporter only enqueues and lets its own
loop do the network work.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

Handler = Callable[[T], None]


class EventBus:
    """Maps an event class to its handlers, in subscription order.

        bus = EventBus()
        bus.subscribe(ScoreEvent, reporter.dispatch)
        bus.emit(event)  # -> number of handlers that ran cleanly
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = {}

    def emit(self, event: object) -> int:
        """Deliver ``event`` to handlers registered for ``type(event)``.

        Subclasses are not matched. A handler that raises is logged with its
        traceback and the remaining handlers still run; the return value
        counts only the ones that completed.
        """
        delivered = 0
        # Snapshot so a handler may unsubscribe itself mid-dispatch.
        for handler in tuple(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("%s handler %r raised", type(event).__name__, handler)
                continue
            delivered += 1
        return delivered

    def subscribe(self, event_type: type[T], handler: Handler[T]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[T], handler: Handler[T]) -> bool:
        """Drop one registration of ``handler``; False if it was not there."""
        handlers = self._handlers.get(event_type, [])
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        if not handlers:
            self._handlers.pop(event_type, None)
        return True

    def clear_subscribers(self) -> None:
        self._handlers.clear()

    def has_subscribers(self, event_type: type) -> bool:
        return self.subscriber_count(event_type) > 0

    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, ()))
