from dataclasses import dataclass
from decimal import Decimal
from typing import List

from .base import DomainEvent


@dataclass
class OrderPlacedEvent(DomainEvent):
    """Event: Order placed."""

    def __init__(self, order_id: str, order_number: str, buyer_id: str, total: Decimal, seller_ids: List[str]):
        super().__init__(
            event_type="order.placed",
            payload={
                "order_id": order_id,
                "order_number": order_number,
                "buyer_id": buyer_id,
                "total": str(total),
                "seller_ids": seller_ids,
            },
        )


@dataclass
class OrderCancelledEvent(DomainEvent):
    """Event: Order cancelled."""

    def __init__(self, order_id: str, order_number: str, buyer_id: str, cancelled_by: str):
        super().__init__(
            event_type="order.cancelled",
            payload={
                "order_id": order_id,
                "order_number": order_number,
                "buyer_id": buyer_id,
                "cancelled_by": cancelled_by,
            },
        )


@dataclass
class OrderCompletedEvent(DomainEvent):
    """Event: Order completed (paid or closed by an admin)."""

    def __init__(self, order_id: str, order_number: str, buyer_id: str, seller_ids: List[str]):
        super().__init__(
            event_type="order.completed",
            payload={
                "order_id": order_id,
                "order_number": order_number,
                "buyer_id": buyer_id,
                "seller_ids": seller_ids,
            },
        )
