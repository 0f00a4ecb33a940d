from .cart_service import CartService
from .pricing_service import PricingService


__all__ = [
    "CartService",
    "PricingService",
]
