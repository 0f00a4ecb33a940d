from .cart_serializers import (
    AddCartItemSerializer,
    CartItemSerializer,
    CartSerializer,
    CartTotalsSerializer,
    CartValidationSerializer,
    UpdateCartItemSerializer,
)


__all__ = [
    "AddCartItemSerializer",
    "CartItemSerializer",
    "CartSerializer",
    "CartTotalsSerializer",
    "CartValidationSerializer",
    "UpdateCartItemSerializer",
]
