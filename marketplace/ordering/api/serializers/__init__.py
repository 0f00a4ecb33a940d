from .order_serializers import (
    CheckoutSerializer,
    CreateOrderSerializer,
    MonthlySalesSerializer,
    OrderItemSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    PaymentStatusSerializer,
)


__all__ = [
    "CheckoutSerializer",
    "CreateOrderSerializer",
    "MonthlySalesSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "OrderStatusSerializer",
    "PaymentStatusSerializer",
]
