"""
SellerRatingService - denormalized seller rating.

The seller's ``rating`` column is the mean of all reviews they received. It is
recomputed synchronously inside the transaction of every review mutation; the
read side (get_seller_rating_stats) always aggregates live.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from django.contrib.auth import get_user_model
from django.db.models import Avg, Count

from marketplace.reviews.domain.models import Review
from marketplace.services.base import BaseService

User = get_user_model()

RATING_PLACES = Decimal("0.01")


def round_rating(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(RATING_PLACES, rounding=ROUND_HALF_UP)


class SellerRatingService(BaseService):
    def recompute_seller_rating(self, seller_id) -> Decimal:
        """Store the seller's current average rating. Caller owns the transaction."""
        average = Review.objects.filter(seller_id=seller_id).aggregate(avg=Avg("rating"))["avg"]
        rating = round_rating(average)
        User.objects.filter(id=seller_id).update(rating=rating)
        self.logger.debug(f"Seller {seller_id} rating recomputed: {rating}")
        return rating

    def get_seller_rating_stats(self, seller_id) -> Dict:
        """
        Returns:
            {"average": Decimal, "total": int, "distribution": {1: n, ..., 5: n}}
            with every bucket present.
        """
        reviews = Review.objects.filter(seller_id=seller_id)
        summary = reviews.aggregate(average=Avg("rating"), total=Count("id"))

        distribution = {rating: 0 for rating in range(1, 6)}
        for row in reviews.order_by().values("rating").annotate(count=Count("id")):
            distribution[row["rating"]] = row["count"]

        return {
            "average": round_rating(summary["average"]),
            "total": summary["total"],
            "distribution": distribution,
        }
