"""
CartService - Shopping Cart Operations

Cart lines are (user, product, quantity) rows. Reading the cart is an explicit
two-step contract: validate_items() is a pure query for lines whose product is
no longer active and remove_unavailable_items() deletes them. get_items() runs
both steps before returning the remaining lines.
"""

from typing import Dict

from django.db import transaction
from django.db.models import F, QuerySet

from marketplace.cart.domain.models import CartItem
from marketplace.catalog.domain.models import Product
from marketplace.infra.observability.metrics import cart_operations_total
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


class CartService(BaseService):
    """
    Service for managing shopping cart operations.

    Dependencies:
    - PricingService: cart totals and service fee
    - CatalogService: availability ledger and interest counter
    """

    def __init__(self, pricing_service, catalog_service):
        super().__init__()
        self.pricing_service = pricing_service
        self.catalog_service = catalog_service

    def _lines(self, user) -> QuerySet:
        return CartItem.objects.filter(user=user).select_related("product", "product__seller")

    def validate_items(self, user) -> QuerySet:
        """Cart lines whose product is no longer active. No side effects."""
        return self._lines(user).exclude(product__status=Product.STATUS_ACTIVE)

    def remove_unavailable_items(self, user) -> int:
        deleted, _ = CartItem.objects.filter(user=user).exclude(product__status=Product.STATUS_ACTIVE).delete()
        if deleted:
            self.logger.info(f"Pruned {deleted} unavailable cart items for user {user.id}")
        return deleted

    def get_items(self, user) -> QuerySet:
        """
        Remaining cart lines after pruning unavailable products.

        Returns a lazy queryset: iterating it again re-reads the store.
        """
        unavailable = self.validate_items(user)
        if unavailable.exists():
            self.remove_unavailable_items(user)
        return self._lines(user).filter(product__status=Product.STATUS_ACTIVE)

    @BaseService.log_performance
    def get_cart(self, user) -> ServiceResult[Dict]:
        """
        Get user's cart lines with totals.

        Example:
            >>> result = cart_service.get_cart(user)
            >>> result.value["total"]
            Decimal('78.75')
        """
        try:
            items = list(self.get_items(user))
            totals = self.pricing_service.calculate_cart_total(items)
            if not totals.ok:
                return totals
            return service_ok({"items": items, **totals.value})
        except Exception as e:
            return self.internal_error(f"getting cart for user {user.id}", e)

    @BaseService.log_performance
    def calculate_totals(self, user) -> ServiceResult[Dict]:
        """Subtotal, service fee and total over the user's active cart lines only."""
        try:
            return self.pricing_service.calculate_cart_total(self._lines(user))
        except Exception as e:
            return self.internal_error(f"calculating totals for user {user.id}", e)

    @BaseService.log_performance
    def add_item(self, user, product_id, quantity: int = 1) -> ServiceResult[Dict]:
        """
        Add a product to the cart, summing quantities if it is already there.

        Errors:
            PRODUCT_NOT_FOUND, PRODUCT_UNAVAILABLE, SELF_PURCHASE, INVALID_QUANTITY
        """
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be an integer")
        if quantity < 1:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be at least 1")

        try:
            with transaction.atomic():
                product = Product.objects.filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if not self.catalog_service.is_available(product):
                    return service_err(ErrorCodes.PRODUCT_UNAVAILABLE, "Product is not available for purchase")
                if product.seller_id == user.id:
                    return service_err(ErrorCodes.SELF_PURCHASE, "You cannot add your own product to your cart")

                # Row lock held for the read-modify-write; concurrent first inserts
                # collide on the unique constraint and get_or_create re-reads.
                item, created = CartItem.objects.select_for_update().get_or_create(
                    user=user, product=product, defaults={"quantity": quantity}
                )
                if not created:
                    CartItem.objects.filter(pk=item.pk).update(quantity=F("quantity") + quantity)
                    item.refresh_from_db(fields=["quantity"])

            self.catalog_service.increment_interested(product.id)
            cart_operations_total.labels(operation="add").inc()
            self.logger.info(f"User {user.id} added {quantity}x product {product.id} (now {item.quantity})")

            totals = self.calculate_totals(user)
            return service_ok({"item": item, "created": created, "totals": totals.value if totals.ok else None})
        except Exception as e:
            return self.internal_error(f"adding product {product_id} to cart", e)

    @BaseService.log_performance
    def update_item_quantity(self, user, item_id, quantity) -> ServiceResult[Dict]:
        """Set a cart line's quantity (must be >= 1)."""
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be an integer")
        if quantity < 1:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be at least 1")

        try:
            with transaction.atomic():
                item = CartItem.objects.select_for_update().filter(pk=item_id).first()
                if item is None:
                    return service_err(ErrorCodes.ITEM_NOT_IN_CART, "Cart item not found")
                if item.user_id != user.id:
                    return service_err(ErrorCodes.PERMISSION_DENIED, "Not authorized to update this cart item")
                item.quantity = quantity
                item.save(update_fields=["quantity"])

            cart_operations_total.labels(operation="update").inc()
            totals = self.calculate_totals(user)
            return service_ok({"item": item, "totals": totals.value if totals.ok else None})
        except Exception as e:
            return self.internal_error(f"updating cart item {item_id}", e)

    @BaseService.log_performance
    def remove_item(self, user, item_id) -> ServiceResult[int]:
        """
        Delete one cart line. Idempotent: a missing line reports 0 rows.

        Removing another user's line is PERMISSION_DENIED.
        """
        try:
            item = CartItem.objects.filter(pk=item_id).only("id", "user_id").first()
            if item is not None and item.user_id != user.id:
                return service_err(ErrorCodes.PERMISSION_DENIED, "Not authorized to remove this cart item")

            deleted, _ = CartItem.objects.filter(pk=item_id, user=user).delete()
            cart_operations_total.labels(operation="remove").inc()
            return service_ok(deleted)
        except Exception as e:
            return self.internal_error(f"removing cart item {item_id}", e)

    @BaseService.log_performance
    def clear_cart(self, user) -> ServiceResult[int]:
        """Delete every line; returns the number removed (0 on an empty cart)."""
        try:
            deleted, _ = CartItem.objects.filter(user=user).delete()
            cart_operations_total.labels(operation="clear").inc()
            self.logger.info(f"Cleared {deleted} cart items for user {user.id}")
            return service_ok(deleted)
        except Exception as e:
            return self.internal_error(f"clearing cart for user {user.id}", e)

    @BaseService.log_performance
    def validate_cart(self, user) -> ServiceResult[Dict]:
        """Checkout readiness: unavailable lines, empty cart, or valid with item count."""
        try:
            unavailable = list(self.validate_items(user))
            if unavailable:
                return service_ok(
                    {
                        "valid": False,
                        "message": "Some items in your cart are no longer available",
                        "unavailable_items": unavailable,
                        "item_count": 0,
                    }
                )

            item_count = CartItem.objects.filter(user=user).count()
            if item_count == 0:
                return service_ok(
                    {"valid": False, "message": "Your cart is empty", "unavailable_items": [], "item_count": 0}
                )

            return service_ok(
                {"valid": True, "message": "Cart is valid", "unavailable_items": [], "item_count": item_count}
            )
        except Exception as e:
            return self.internal_error(f"validating cart for user {user.id}", e)

    def get_item_count(self, user) -> int:
        return CartItem.objects.filter(user=user).count()

    def is_in_cart(self, user, product_id) -> bool:
        return CartItem.objects.filter(user=user, product_id=product_id).exists()

    def remove_products(self, user, product_ids) -> int:
        """Drop the lines for ``product_ids``. Raises on failure so an enclosing transaction rolls back."""
        deleted, _ = CartItem.objects.filter(user=user, product_id__in=list(product_ids)).delete()
        return deleted
