import logging
from typing import Callable, List

from shared.events import Event

logger = logging.getLogger(__name__)


class MatchEvents:
    """Publishes match and tournament events to the stream bus and in-process listeners."""

    def __init__(self, bus=None):
        self.bus = bus
        self._listeners: List[Callable[[Event], None]] = []

    def subscribe(self, listener: Callable[[Event], None]):
        self._listeners.append(listener)

    def publish(self, event: Event):
        if self.bus is not None:
            self.bus.broadcast(event.name, event.payload())

        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                # A broken listener must not abort the match that emitted the event
                logger.exception(f"Listener failed for {event.name}")
