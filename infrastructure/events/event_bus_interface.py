import uuid
from abc import ABC, abstractmethod
from typing import Callable

from django.utils import timezone


class EventBus(ABC):
    """
    Publish/subscribe contract for domain events.

    Handlers receive the full envelope:
    ``{"event_id": ..., "event_type": ..., "occurred_at": ..., "payload": {...}}``.
    ``event_id`` is unique per publish, so a handler running in several
    processes can tell copies of one event apart from new events.
    Publishing must never raise into business code.
    """

    @staticmethod
    def envelope(event_type: str, payload: dict) -> dict:
        return {
            "event_id": uuid.uuid4().hex,
            "event_type": event_type,
            "occurred_at": timezone.now().isoformat(),
            "payload": payload,
        }

    @abstractmethod
    def publish(self, event_type: str, payload: dict):
        """Publish an event."""

    @abstractmethod
    def subscribe(self, event_type: str, handler: Callable):
        """Register a handler for an event type."""

    def start_listening(self):
        """Begin delivering events to subscribers (no-op for synchronous buses)."""
