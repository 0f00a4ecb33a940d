from .rating_service import SellerRatingService
from .review_service import ReviewService


__all__ = ["ReviewService", "SellerRatingService"]
