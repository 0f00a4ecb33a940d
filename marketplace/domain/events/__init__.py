from .base import DomainEvent
from .order_events import OrderCancelledEvent, OrderCompletedEvent, OrderPlacedEvent
from .review_events import SellerRatingChangedEvent


__all__ = [
    "DomainEvent",
    "OrderPlacedEvent",
    "OrderCancelledEvent",
    "OrderCompletedEvent",
    "SellerRatingChangedEvent",
]
