from .review_serializers import (
    CreateReviewSerializer,
    RatingStatsSerializer,
    ReviewEligibilitySerializer,
    ReviewSerializer,
    UpdateReviewSerializer,
)


__all__ = [
    "CreateReviewSerializer",
    "RatingStatsSerializer",
    "ReviewEligibilitySerializer",
    "ReviewSerializer",
    "UpdateReviewSerializer",
]
