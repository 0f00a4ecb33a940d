"""
OrderService - Order Lifecycle Management

Converts a validated cart into an immutable order and owns the order and
payment state machines:

    pending --> completed   (terminal)
    pending --> cancelled   (terminal)
    payment: pending --> paid (one way; paying a pending order completes it)
"""

import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.db.models.functions import ExtractMonth
from django.utils import timezone

from infrastructure.observability import get_tracer
from marketplace.catalog.domain.models import Product
from marketplace.domain.events import OrderCancelledEvent, OrderCompletedEvent, OrderPlacedEvent
from marketplace.infra.observability.metrics import (
    checkout_failures_total,
    order_status_transitions_total,
    order_value,
    orders_placed_total,
)
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.ordering.domain.services.order_number import (
    ORDER_NUMBER_PREFIX,
    OrderNumberConflict,
    create_order_with_unique_number,
)
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok
from utils.rbac import is_admin

User = get_user_model()
tracer = get_tracer(__name__)

PAYMENT_METHODS = ("credit", "paypal", "other")
DELIVERY_FIELDS = ("address", "city", "state", "zip")


class OrderService(BaseService):
    """
    Service for managing order lifecycle.
    """

    def __init__(self, cart_service, pricing_service, catalog_service, payment_provider, event_bus):
        """
        Args:
            cart_service: cart lines and pruning (injected)
            pricing_service: authoritative fee rule (injected)
            catalog_service: availability ledger (injected)
            payment_provider: PaymentProviderInterface used by checkout (injected)
            event_bus: EventBus for domain events (injected)
        """
        super().__init__()
        self.cart_service = cart_service
        self.pricing_service = pricing_service
        self.catalog_service = catalog_service
        self.payment_provider = payment_provider
        self.event_bus = event_bus

    # ---- helpers -----------------------------------------------------------

    def _lookup(self, order_id) -> Optional[Q]:
        """Orders are addressable by UUID or by their ORD- number."""
        if isinstance(order_id, str) and order_id.upper().startswith(ORDER_NUMBER_PREFIX):
            return Q(order_number=order_id.upper())
        try:
            return Q(id=uuid.UUID(str(order_id)))
        except ValueError:
            return None

    def _locked_order(self, order_id) -> Optional[Order]:
        lookup = self._lookup(order_id)
        if lookup is None:
            return None
        return Order.objects.select_for_update().filter(lookup).first()

    def _can_access(self, order: Order, user) -> bool:
        return order.buyer_id == user.id or is_admin(user)

    def _seller_ids(self, order: Order) -> List:
        return list(order.items.values_list("seller_id", flat=True).distinct())

    def _publish(self, event) -> None:
        try:
            self.event_bus.publish(event.event_type, event.payload)
        except Exception as e:
            self.logger.error(f"Failed to publish {event.event_type}: {e}")

    def _complete(self, order: Order) -> List:
        """
        Move an order into completed and credit each distinct seller one sale.

        Caller holds the order row lock inside a transaction.
        """
        order.status = Order.STATUS_COMPLETED
        order.completed_at = timezone.now()
        seller_ids = self._seller_ids(order)
        User.objects.filter(id__in=seller_ids).update(total_sales=F("total_sales") + 1)
        order_status_transitions_total.labels(status=Order.STATUS_COMPLETED).inc()
        return seller_ids

    def _cancel(self, order: Order, user) -> None:
        order.status = Order.STATUS_CANCELLED
        order.cancelled_at = timezone.now()
        order.cancelled_by = user
        order.save(update_fields=["status", "cancelled_at", "cancelled_by", "updated_at"])
        self.catalog_service.restore_to_active(order.items.values_list("product_id", flat=True))
        order_status_transitions_total.labels(status=Order.STATUS_CANCELLED).inc()

    # ---- commands ----------------------------------------------------------

    @BaseService.log_performance
    def create_order(self, user, payment_method: str, delivery: Optional[Dict] = None) -> ServiceResult[Order]:
        """
        Create an order from the user's cart.

        The order row, its items, the products' sold status and the cart
        clean-up commit together or not at all.

        Errors:
            INVALID_PAYMENT_METHOD, CART_EMPTY, PRODUCT_UNAVAILABLE
        """
        if payment_method not in PAYMENT_METHODS:
            return service_err(
                ErrorCodes.INVALID_PAYMENT_METHOD, f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}"
            )
        delivery = delivery or {}

        with tracer.start_as_current_span("order.create") as span:
            span.set_attribute("order.buyer_id", str(user.id))
            try:
                with tracer.start_as_current_span("order.snapshot_cart"):
                    items = list(self.cart_service.get_items(user))
                    if not items:
                        return service_err(ErrorCodes.CART_EMPTY, "Your cart is empty")

                with transaction.atomic():
                    product_ids = [item.product_id for item in items]
                    locked = {p.id: p for p in Product.objects.select_for_update().filter(id__in=product_ids)}

                    unavailable = [
                        item.product.name
                        for item in items
                        if item.product_id not in locked or not self.catalog_service.is_available(locked[item.product_id])
                    ]
                    if unavailable:
                        return service_err(
                            ErrorCodes.PRODUCT_UNAVAILABLE,
                            f"Some items are no longer available: {', '.join(unavailable)}",
                        )

                    # Totals from the locked rows so the snapshot matches what is sold
                    for item in items:
                        item.product = locked[item.product_id]
                    totals_result = self.pricing_service.calculate_cart_total(items)
                    if not totals_result.ok:
                        return totals_result
                    totals = totals_result.value

                    with tracer.start_as_current_span("order.save"):
                        order = create_order_with_unique_number(
                            buyer=user,
                            payment_method=payment_method,
                            subtotal=totals["subtotal"],
                            service_fee=totals["service_fee"],
                            total=totals["total"],
                            delivery_address=delivery.get("address") or "",
                            delivery_city=delivery.get("city") or "",
                            delivery_state=delivery.get("state") or "",
                            delivery_zip=delivery.get("zip") or "",
                        )

                        for item in items:
                            OrderItem.objects.create(
                                order=order,
                                product=item.product,
                                seller_id=item.product.seller_id,
                                quantity=item.quantity,
                                price_at_purchase=item.product.price,
                                product_name=item.product.name,
                            )

                    self.catalog_service.mark_sold(product_ids)
                    self.cart_service.remove_products(user, product_ids)

                seller_ids = sorted({str(item.product.seller_id) for item in items})
                self._publish(
                    OrderPlacedEvent(
                        order_id=str(order.id),
                        order_number=order.order_number,
                        buyer_id=str(user.id),
                        total=order.total,
                        seller_ids=seller_ids,
                    )
                )

                orders_placed_total.labels(payment_method=payment_method).inc()
                order_value.observe(float(order.total))
                span.set_attribute("order.number", order.order_number)
                span.set_attribute("order.total", str(order.total))

                self.logger.info(
                    f"Created order {order.order_number} for user {user.id}: {len(items)} items, total {order.total}"
                )
                return service_ok(order)

            except OrderNumberConflict as e:
                span.record_exception(e)
                self.logger.error(f"Could not allocate an order number for user {user.id}: {e}")
                return service_err(ErrorCodes.ORDER_NUMBER_EXHAUSTED, "Could not allocate an order number, try again")
            except Exception as e:
                span.record_exception(e)
                return self.internal_error(f"creating order for user {user.id}", e)

    @BaseService.log_performance
    def cancel_order(self, order_id, user) -> ServiceResult[Order]:
        """
        Cancel a pending order and put its products back on sale.

        Errors:
            ORDER_NOT_FOUND, NOT_ORDER_OWNER, ORDER_CANNOT_CANCEL
        """
        with tracer.start_as_current_span("order.cancel") as span:
            span.set_attribute("order.lookup", str(order_id))
            try:
                with transaction.atomic():
                    order = self._locked_order(order_id)
                    if order is None:
                        return service_err(ErrorCodes.ORDER_NOT_FOUND, "Order not found")
                    if not self._can_access(order, user):
                        return service_err(ErrorCodes.NOT_ORDER_OWNER, "Not authorized to cancel this order")
                    if order.is_terminal:
                        return service_err(
                            ErrorCodes.ORDER_CANNOT_CANCEL, f"Cannot cancel an order that is already {order.status}"
                        )
                    self._cancel(order, user)

                self._publish(
                    OrderCancelledEvent(
                        order_id=str(order.id),
                        order_number=order.order_number,
                        buyer_id=str(order.buyer_id),
                        cancelled_by=str(user.id),
                    )
                )
                self.logger.info(f"Order {order.order_number} cancelled by {user.id}")
                return service_ok(order)
            except Exception as e:
                span.record_exception(e)
                return self.internal_error(f"cancelling order {order_id}", e)

    @BaseService.log_performance
    def update_order_status(self, order_id, status: str, user) -> ServiceResult[Order]:
        """
        Admin status change. Completed and cancelled are terminal; setting the
        current status again is a no-op.
        """
        if status not in dict(Order.STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, "Invalid order status")

        try:
            seller_ids = None
            with transaction.atomic():
                order = self._locked_order(order_id)
                if order is None:
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, "Order not found")
                if order.status == status:
                    return service_ok(order)
                if order.is_terminal:
                    return service_err(ErrorCodes.INVALID_ORDER_STATE, f"Order is already {order.status}")

                if status == Order.STATUS_COMPLETED:
                    seller_ids = self._complete(order)
                    order.save(update_fields=["status", "completed_at", "updated_at"])
                elif status == Order.STATUS_CANCELLED:
                    self._cancel(order, user)

            if seller_ids is not None:
                self._publish(self._completed_event(order, seller_ids))
            elif order.status == Order.STATUS_CANCELLED:
                self._publish(
                    OrderCancelledEvent(
                        order_id=str(order.id),
                        order_number=order.order_number,
                        buyer_id=str(order.buyer_id),
                        cancelled_by=str(user.id),
                    )
                )
            self.logger.info(f"Order {order.order_number} status set to {status} by {user.id}")
            return service_ok(order)
        except Exception as e:
            return self.internal_error(f"updating status of order {order_id}", e)

    @BaseService.log_performance
    def update_payment_status(self, order_id, payment_status: str, user) -> ServiceResult[Order]:
        """
        Record a payment status. Paying an order that is still pending also
        completes it.
        """
        if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, "Invalid payment status")

        try:
            seller_ids = None
            with transaction.atomic():
                order = self._locked_order(order_id)
                if order is None:
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, "Order not found")
                if not self._can_access(order, user):
                    return service_err(ErrorCodes.NOT_ORDER_OWNER, "Not authorized to update this order")
                if order.payment_status == payment_status:
                    return service_ok(order)
                if order.payment_status == Order.PAYMENT_PAID:
                    return service_err(ErrorCodes.INVALID_ORDER_STATE, "A paid order cannot go back to pending")
                if order.status == Order.STATUS_CANCELLED:
                    return service_err(ErrorCodes.INVALID_ORDER_STATE, "Cannot pay for a cancelled order")

                order.payment_status = Order.PAYMENT_PAID
                order.paid_at = timezone.now()
                if order.status == Order.STATUS_PENDING:
                    seller_ids = self._complete(order)
                order.save()

            if seller_ids is not None:
                self._publish(self._completed_event(order, seller_ids))
            return service_ok(order)
        except Exception as e:
            return self.internal_error(f"updating payment status of order {order_id}", e)

    @BaseService.log_performance
    def process_checkout(self, order_id, user, payment_type: str, payment_token: Optional[str]) -> ServiceResult[Dict]:
        """
        Simulated checkout through the configured payment provider.

        Errors:
            ORDER_NOT_FOUND, NOT_ORDER_OWNER, ORDER_ALREADY_PAID,
            INVALID_ORDER_STATE, PAYMENT_FAILED
        """
        try:
            seller_ids = None
            with transaction.atomic():
                order = self._locked_order(order_id)
                if order is None:
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, "Order not found")
                if order.buyer_id != user.id:
                    return service_err(ErrorCodes.NOT_ORDER_OWNER, "Only the buyer can pay for this order")
                if order.payment_status == Order.PAYMENT_PAID:
                    return service_err(ErrorCodes.ORDER_ALREADY_PAID, "Order has already been paid")
                if order.status == Order.STATUS_CANCELLED:
                    return service_err(ErrorCodes.INVALID_ORDER_STATE, "Cannot pay for a cancelled order")

                charge = self.payment_provider.charge(
                    amount=order.total,
                    currency="usd",
                    payment_type=payment_type,
                    payment_token=payment_token,
                    metadata={"order_number": order.order_number, "buyer_id": str(user.id)},
                )
                if not charge.succeeded:
                    checkout_failures_total.labels(reason=payment_type or "unknown").inc()
                    return service_err(ErrorCodes.PAYMENT_FAILED, charge.failure_reason or "Payment failed")

                order.payment_status = Order.PAYMENT_PAID
                order.paid_at = timezone.now()
                if order.status == Order.STATUS_PENDING:
                    seller_ids = self._complete(order)
                order.save()

            if seller_ids is not None:
                self._publish(self._completed_event(order, seller_ids))
            self.logger.info(f"Checkout succeeded for order {order.order_number} ({charge.transaction_id})")
            return service_ok({"order": order, "transaction_id": charge.transaction_id})
        except Exception as e:
            return self.internal_error(f"processing checkout for order {order_id}", e)

    def _completed_event(self, order: Order, seller_ids: List) -> OrderCompletedEvent:
        return OrderCompletedEvent(
            order_id=str(order.id),
            order_number=order.order_number,
            buyer_id=str(order.buyer_id),
            seller_ids=[str(s) for s in seller_ids],
        )

    # ---- queries -----------------------------------------------------------

    def _orders(self):
        return Order.objects.select_related("buyer").prefetch_related("items__product", "items__seller")

    @BaseService.log_performance
    def get_user_orders(self, user, status: Optional[str] = None) -> ServiceResult[List[Order]]:
        try:
            if status and status not in dict(Order.STATUS_CHOICES):
                return service_err(ErrorCodes.INVALID_INPUT, "Invalid order status")
            queryset = self._orders().filter(buyer=user)
            if status:
                queryset = queryset.filter(status=status)
            return service_ok(list(queryset))
        except Exception as e:
            return self.internal_error(f"listing orders for user {user.id}", e)

    @BaseService.log_performance
    def get_order(self, order_id, user) -> ServiceResult[Order]:
        """Order details for its buyer or an admin."""
        try:
            lookup = self._lookup(order_id)
            order = self._orders().filter(lookup).first() if lookup is not None else None
            if order is None:
                return service_err(ErrorCodes.ORDER_NOT_FOUND, "Order not found")
            if not self._can_access(order, user):
                return service_err(ErrorCodes.NOT_ORDER_OWNER, "Not authorized to view this order")
            return service_ok(order)
        except Exception as e:
            return self.internal_error(f"getting order {order_id}", e)

    @BaseService.log_performance
    def get_all_orders(self, status: Optional[str] = None, page=None, page_size=None) -> ServiceResult[Dict]:
        try:
            if status and status not in dict(Order.STATUS_CHOICES):
                return service_err(ErrorCodes.INVALID_INPUT, "Invalid order status")
            queryset = self._orders()
            if status:
                queryset = queryset.filter(status=status)
            return service_ok(paginate(queryset, page, page_size))
        except Exception as e:
            return self.internal_error("listing all orders", e)

    @BaseService.log_performance
    def get_stats(self) -> ServiceResult[Dict]:
        """Order count, completed sales volume and a per-status breakdown."""
        try:
            by_status = {status: 0 for status, _ in Order.STATUS_CHOICES}
            for row in Order.objects.order_by().values("status").annotate(count=Count("id")):
                by_status[row["status"]] = row["count"]

            total_sales = Order.objects.filter(status=Order.STATUS_COMPLETED).aggregate(total=Sum("total"))["total"]
            return service_ok(
                {
                    "total_orders": sum(by_status.values()),
                    "total_sales": total_sales or Decimal("0.00"),
                    "by_status": by_status,
                }
            )
        except Exception as e:
            return self.internal_error("computing order stats", e)

    @BaseService.log_performance
    def get_monthly_sales(self, year: Optional[int] = None) -> ServiceResult[List[Dict]]:
        """Completed orders per calendar month of ``year``, all twelve months present."""
        try:
            year = int(year or timezone.now().year)
            months = {m: {"month": m, "order_count": 0, "total_sales": Decimal("0.00")} for m in range(1, 13)}

            rows = (
                Order.objects.filter(status=Order.STATUS_COMPLETED, created_at__year=year)
                .annotate(month=ExtractMonth("created_at"))
                .values("month")
                .annotate(order_count=Count("id"), total_sales=Sum("total"))
                .order_by("month")
            )
            for row in rows:
                months[row["month"]].update(order_count=row["order_count"], total_sales=row["total_sales"])

            return service_ok([months[m] for m in range(1, 13)])
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_INPUT, "Year must be a number")
        except Exception as e:
            return self.internal_error("computing monthly sales", e)
