from dataclasses import dataclass

from .base import DomainEvent


@dataclass
class SellerRatingChangedEvent(DomainEvent):
    """Event: a review mutation changed a seller's aggregate rating."""

    def __init__(self, seller_id: str, rating: str, total_reviews: int, action: str):
        super().__init__(
            event_type="seller.rating_changed",
            payload={
                "seller_id": seller_id,
                "rating": rating,
                "total_reviews": total_reviews,
                "action": action,
            },
        )
