"""Synchronous in-process event bus for booking events."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

from hallbooking.domain.events import BookingEvent

logger = logging.getLogger(__name__)

Handler = Callable[[BookingEvent], None]


class EventBus:
    """Publish/subscribe bus for booking events.

    A subscription to an event class also receives its subclasses, so a
    handler registered for :class:`BookingEvent` sees every booking event.
    The most specific subscribers run first, each group in registration order.
    A handler that raises stops delivery and the error reaches the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[BookingEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[BookingEvent], handler: Handler) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: type[BookingEvent], handler: Handler) -> bool:
        handlers = self._subscribers.get(event_type, [])
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def handlers_for(self, event_type: type[BookingEvent]) -> list[Handler]:
        return [
            handler
            for cls in event_type.__mro__
            for handler in self._subscribers.get(cls, ())
        ]

    def publish(self, event: BookingEvent) -> None:
        handlers = self.handlers_for(type(event))
        logger.debug(
            "publishing %s for %s to %d handler(s)",
            type(event).__name__,
            event.reservation_id,
            len(handlers),
        )
        for handler in handlers:
            handler(event)
