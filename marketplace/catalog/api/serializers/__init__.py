from .product_serializers import (
    ProductCreateSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductReviewDecisionSerializer,
    ProductStatusSerializer,
    ProductUpdateSerializer,
)
from .user_serializers import UserSummarySerializer


__all__ = [
    "ProductCreateSerializer",
    "ProductDetailSerializer",
    "ProductListSerializer",
    "ProductReviewDecisionSerializer",
    "ProductStatusSerializer",
    "ProductUpdateSerializer",
    "UserSummarySerializer",
]
