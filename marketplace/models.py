from marketplace.cart.domain.models import CartItem
from marketplace.catalog.domain.models import Product
from marketplace.moderation.domain.models import Report
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.reviews.domain.models import Review
from marketplace.settings_provider.domain.models import PlatformSetting


__all__ = [
    "PlatformSetting",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "Review",
    "Report",
]
