import logging
from typing import Callable, List

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """
    Synchronous in-process bus for tests and single-process development.

    Handlers run inline during publish; handler errors are logged.
    """

    def __init__(self):
        self._subscribers = {}
        self.published: List[dict] = []

    def publish(self, event_type: str, payload: dict):
        message = self.envelope(event_type, payload)
        self.published.append(message)
        logger.debug(f"Published in-memory event: {event_type}")

        for handler in self._subscribers.get(event_type, []):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"Handler error for {event_type}: {str(e)}")

    def subscribe(self, event_type: str, handler: Callable):
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def clear(self):
        self.published.clear()
