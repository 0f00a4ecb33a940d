"""
PricingService - cart totals and the platform service fee.

All calculations use Decimal. Intermediate values are kept exact and only
the final monetary outputs are rounded (2 places, ROUND_HALF_UP). The same
rule is used for the cart view and for the order snapshot at checkout.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

CENTS = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


class PricingService(BaseService):
    """
    Service for calculating cart totals and service fees.

    Commission rate and minimum commission come from the injected settings
    provider so admin changes apply without a restart.
    """

    def __init__(self, settings_service):
        super().__init__()
        self.settings_service = settings_service

    def calculate_service_fee(self, subtotal: Decimal) -> Decimal:
        """
        Unrounded fee: max(subtotal * rate, min_commission), or 0 for an empty subtotal.

        Example:
            >>> pricing_service.calculate_service_fee(Decimal("75.00"))  # rate 5%, min 0.50
            Decimal('3.7500')
        """
        subtotal = Decimal(subtotal)
        if subtotal <= 0:
            return Decimal("0")
        return max(subtotal * self.settings_service.commission_rate(), self.settings_service.min_commission())

    @BaseService.log_performance
    def calculate_cart_total(self, cart_items: Iterable) -> ServiceResult[Dict]:
        """
        Calculate totals for cart lines.

        Args:
            cart_items: CartItem rows (with ``product`` loaded); lines whose
                product is not active are ignored.

        Returns:
            ServiceResult with subtotal, service_fee, total and item_count
        """
        try:
            subtotal = Decimal("0")
            item_count = 0

            for item in cart_items:
                if item.quantity < 1:
                    return service_err(ErrorCodes.INVALID_QUANTITY, f"Invalid quantity: {item.quantity}")
                if not item.product.is_available:
                    continue
                subtotal += Decimal(item.product.price) * item.quantity
                item_count += 1

            service_fee = self.calculate_service_fee(subtotal)

            return service_ok(
                {
                    "subtotal": quantize_money(subtotal),
                    "service_fee": quantize_money(service_fee),
                    "total": quantize_money(subtotal + service_fee),
                    "item_count": item_count,
                }
            )

        except Exception as e:
            return self.internal_error("calculating cart total", e)
