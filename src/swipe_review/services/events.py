"""Minimal synchronous publish/subscribe helper."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

EventT = TypeVar("EventT")


@dataclass
class EventBus(Generic[EventT]):
    """Delivers events to subscribed listeners in subscription order."""

    _listeners: list[Callable[[EventT], None]] = field(
        default_factory=list, init=False, repr=False
    )

    def subscribe(self, listener: Callable[[EventT], None]) -> Callable[[], None]:
        """Register a listener and return a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: EventT) -> None:
        """Deliver an event; a failing listener does not stop the others."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Listener failed for %s", type(event).__name__)
