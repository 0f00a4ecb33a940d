import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from infrastructure.events.memory_event_bus import InMemoryEventBus
from infrastructure.payments.mock_provider import MockPaymentProvider
from marketplace.cart.domain.services import CartService, PricingService
from marketplace.catalog.domain.services import CatalogService
from marketplace.models import CartItem, Order, OrderItem, Product
from marketplace.ordering.domain.services import OrderService
from marketplace.settings_provider.domain.services import SettingsService
from marketplace.tests.factories import (
    AdminFactory,
    CartItemFactory,
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    SellerFactory,
    UserFactory,
)

pytestmark = pytest.mark.unit

User = get_user_model()


class OrderServiceTestCase(TestCase):
    def setUp(self):
        settings_service = SettingsService()
        pricing = PricingService(settings_service=settings_service)
        catalog = CatalogService(settings_service=settings_service)
        self.event_bus = InMemoryEventBus()
        self.payment_provider = MockPaymentProvider()
        self.service = OrderService(
            cart_service=CartService(pricing_service=pricing, catalog_service=catalog),
            pricing_service=pricing,
            catalog_service=catalog,
            payment_provider=self.payment_provider,
            event_bus=self.event_bus,
        )
        self.buyer = UserFactory()

    def fill_cart(self, *prices):
        products = [ProductFactory(price=Decimal(price)) for price in prices]
        for product in products:
            CartItemFactory(user=self.buyer, product=product)
        return products

    def event_types(self):
        return [event["event_type"] for event in self.event_bus.published]


class CreateOrderTests(OrderServiceTestCase):
    def test_checkout_scenario(self):
        products = self.fill_cart("50.00", "25.00")

        result = self.service.create_order(self.buyer, "credit", {"address": "1 College Way", "city": "Arlington"})

        self.assertTrue(result.ok)
        order = result.value
        self.assertTrue(order.order_number.startswith("ORD-"))
        self.assertEqual(len(order.order_number), 9)
        self.assertEqual(order.subtotal, Decimal("75.00"))
        self.assertEqual(order.service_fee, Decimal("3.75"))
        self.assertEqual(order.total, Decimal("78.75"))
        self.assertEqual(order.total, order.subtotal + order.service_fee)
        self.assertEqual(order.delivery_city, "Arlington")
        self.assertEqual(order.items.count(), 2)
        for product in products:
            product.refresh_from_db()
            self.assertEqual(product.status, Product.STATUS_SOLD)
        self.assertFalse(CartItem.objects.filter(user=self.buyer).exists())
        self.assertEqual(self.event_types(), ["order.placed"])

    def test_items_snapshot_price_and_seller(self):
        (product,) = self.fill_cart("12.34")

        order = self.service.create_order(self.buyer, "paypal").value
        Product.objects.filter(pk=product.pk).update(price=Decimal("99.00"), name="Renamed")

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.price_at_purchase, Decimal("12.34"))
        self.assertEqual(item.product_name, product.name)
        self.assertEqual(item.seller_id, product.seller_id)

    def test_empty_cart(self):
        result = self.service.create_order(self.buyer, "credit")

        self.assertEqual(result.error, "cart_empty")
        self.assertFalse(Order.objects.exists())

    def test_invalid_payment_method(self):
        self.fill_cart("10.00")

        result = self.service.create_order(self.buyer, "bitcoin")

        self.assertEqual(result.error, "invalid_payment_method")

    def test_product_sold_meanwhile_rolls_back(self):
        first, second = self.fill_cart("10.00", "20.00")

        with patch.object(CartService, "get_items", return_value=list(CartItem.objects.filter(user=self.buyer))):
            Product.objects.filter(pk=second.pk).update(status=Product.STATUS_SOLD)
            result = self.service.create_order(self.buyer, "credit")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, "product_unavailable")
        self.assertFalse(Order.objects.exists())
        first.refresh_from_db()
        self.assertEqual(first.status, Product.STATUS_ACTIVE)
        self.assertEqual(CartItem.objects.filter(user=self.buyer).count(), 2)

    def test_unavailable_lines_are_pruned_before_ordering(self):
        kept, gone = self.fill_cart("10.00", "20.00")
        Product.objects.filter(pk=gone.pk).update(status=Product.STATUS_SUSPENDED)

        order = self.service.create_order(self.buyer, "credit").value

        self.assertEqual(list(order.items.values_list("product_id", flat=True)), [kept.id])
        self.assertEqual(order.subtotal, Decimal("10.00"))

    def test_order_number_collision_is_retried(self):
        OrderFactory(order_number="ORD-12345")
        self.fill_cart("10.00")

        with patch(
            "marketplace.ordering.domain.services.order_number.generate_order_number",
            side_effect=["ORD-12345", "ORD-54321"],
        ):
            result = self.service.create_order(self.buyer, "credit")

        self.assertTrue(result.ok)
        self.assertEqual(result.value.order_number, "ORD-54321")

    def test_order_number_exhaustion_rolls_back(self):
        OrderFactory(order_number="ORD-12345")
        (product,) = self.fill_cart("10.00")

        with patch(
            "marketplace.ordering.domain.services.order_number.generate_order_number", return_value="ORD-12345"
        ):
            result = self.service.create_order(self.buyer, "credit")

        self.assertEqual(result.error, "order_number_exhausted")
        self.assertEqual(result.category, "server_fault")
        product.refresh_from_db()
        self.assertEqual(product.status, Product.STATUS_ACTIVE)
        self.assertEqual(Order.objects.filter(buyer=self.buyer).count(), 0)

    def test_failed_item_insert_rolls_back_everything(self):
        products = self.fill_cart("10.00", "20.00")
        real_create = OrderItem.objects.create
        inserted = []

        def create_then_fail(**kwargs):
            if inserted:
                raise DatabaseError("could not write order item")
            inserted.append(kwargs["product"].id)
            return real_create(**kwargs)

        with patch.object(OrderItem.objects, "create", side_effect=create_then_fail):
            result = self.service.create_order(self.buyer, "credit")

        self.assertEqual(result.error, "internal_error")
        self.assertEqual(len(inserted), 1)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        for product in products:
            product.refresh_from_db()
            self.assertEqual(product.status, Product.STATUS_ACTIVE)
        self.assertEqual(CartItem.objects.filter(user=self.buyer).count(), 2)
        self.assertEqual(self.event_bus.published, [])

    def test_order_totals_match_quoted_cart_totals(self):
        self.fill_cart("19.99", "5.01", "0.10")
        CartItemFactory(user=self.buyer, product=ProductFactory(price=Decimal("7.33")), quantity=3)

        quoted = self.service.cart_service.calculate_totals(self.buyer).value
        order = self.service.create_order(self.buyer, "credit").value

        self.assertEqual(order.subtotal, quoted["subtotal"])
        self.assertEqual(order.service_fee, quoted["service_fee"])
        self.assertEqual(order.total, quoted["total"])


class OrderLifecycleTests(OrderServiceTestCase):
    def setUp(self):
        super().setUp()
        self.fill_cart("30.00")
        self.order = self.service.create_order(self.buyer, "credit").value
        self.event_bus.clear()

    def test_cancel_restores_products(self):
        result = self.service.cancel_order(self.order.id, self.buyer)

        self.assertTrue(result.ok)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_CANCELLED)
        self.assertEqual(self.order.cancelled_by, self.buyer)
        product = self.order.items.get().product
        self.assertEqual(product.status, Product.STATUS_ACTIVE)
        self.assertEqual(self.event_types(), ["order.cancelled"])

    def test_cancel_by_order_number(self):
        result = self.service.cancel_order(self.order.order_number.lower(), self.buyer)

        self.assertTrue(result.ok)

    def test_cancel_twice_conflicts(self):
        self.service.cancel_order(self.order.id, self.buyer)

        result = self.service.cancel_order(self.order.id, self.buyer)

        self.assertEqual(result.error, "order_cannot_cancel")
        self.assertEqual(result.category, "conflict")

    def test_cancel_by_stranger(self):
        result = self.service.cancel_order(self.order.id, UserFactory())

        self.assertEqual(result.category, "forbidden")

    def test_admin_can_cancel(self):
        result = self.service.cancel_order(self.order.id, AdminFactory())

        self.assertTrue(result.ok)

    def test_unknown_order(self):
        self.assertEqual(self.service.cancel_order(uuid.uuid4(), self.buyer).error, "order_not_found")
        self.assertEqual(self.service.get_order("not-an-id", self.buyer).error, "order_not_found")

    def test_payment_completes_pending_order(self):
        seller = self.order.items.get().seller

        result = self.service.update_payment_status(self.order.id, Order.PAYMENT_PAID, self.buyer)

        self.assertTrue(result.ok)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)
        self.assertIsNotNone(self.order.paid_at)
        seller.refresh_from_db()
        self.assertEqual(seller.total_sales, 1)
        self.assertEqual(self.event_types(), ["order.completed"])

    def test_paid_order_cannot_go_back(self):
        self.service.update_payment_status(self.order.id, Order.PAYMENT_PAID, self.buyer)

        result = self.service.update_payment_status(self.order.id, Order.PAYMENT_PENDING, self.buyer)

        self.assertEqual(result.error, "invalid_order_state")

    def test_cancelled_order_cannot_be_paid(self):
        self.service.cancel_order(self.order.id, self.buyer)

        result = self.service.update_payment_status(self.order.id, Order.PAYMENT_PAID, self.buyer)

        self.assertEqual(result.error, "invalid_order_state")

    def test_checkout_charges_provider(self):
        with patch.object(self.payment_provider, "charge", wraps=self.payment_provider.charge) as charge:
            result = self.service.process_checkout(self.order.id, self.buyer, "card", "tok_visa")

        self.assertTrue(result.ok)
        self.assertTrue(result.value["transaction_id"].startswith("mock_"))
        charge.assert_called_once()
        self.assertEqual(charge.call_args.kwargs["amount"], self.order.total)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PAID)

        again = self.service.process_checkout(self.order.id, self.buyer, "card", "tok_visa")
        self.assertEqual(again.error, "order_already_paid")

    def test_checkout_declined(self):
        result = self.service.process_checkout(self.order.id, self.buyer, "card", "")

        self.assertEqual(result.error, "payment_failed")
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, Order.PAYMENT_PENDING)

    def test_checkout_only_by_buyer(self):
        result = self.service.process_checkout(self.order.id, AdminFactory(), "card", "tok")

        self.assertEqual(result.error, "not_order_owner")

    def test_admin_status_update(self):
        admin = AdminFactory()

        self.assertEqual(self.service.update_order_status(self.order.id, "shipped", admin).error, "invalid_input")
        result = self.service.update_order_status(self.order.id, Order.STATUS_COMPLETED, admin)
        self.assertTrue(result.ok)
        # Same status again is a no-op, a different one conflicts
        self.assertTrue(self.service.update_order_status(self.order.id, Order.STATUS_COMPLETED, admin).ok)
        conflict = self.service.update_order_status(self.order.id, Order.STATUS_CANCELLED, admin)
        self.assertEqual(conflict.category, "conflict")


class SalesCounterTests(OrderServiceTestCase):
    def test_total_sales_counted_once_per_seller(self):
        seller = SellerFactory()
        other = SellerFactory()
        order = OrderFactory(buyer=self.buyer)
        OrderItemFactory(order=order, product=ProductFactory(seller=seller, status=Product.STATUS_SOLD))
        OrderItemFactory(order=order, product=ProductFactory(seller=seller, status=Product.STATUS_SOLD))
        OrderItemFactory(order=order, product=ProductFactory(seller=other, status=Product.STATUS_SOLD))

        self.service.update_order_status(order.id, Order.STATUS_COMPLETED, AdminFactory())

        self.assertEqual(User.objects.get(pk=seller.pk).total_sales, 1)
        self.assertEqual(User.objects.get(pk=other.pk).total_sales, 1)
        self.assertEqual(set(self.event_bus.published[0]["payload"]["seller_ids"]), {str(seller.id), str(other.id)})


class OrderQueryTests(OrderServiceTestCase):
    def test_user_orders_with_status_filter(self):
        OrderFactory(buyer=self.buyer)
        OrderFactory(buyer=self.buyer, status=Order.STATUS_COMPLETED)
        OrderFactory()

        self.assertEqual(len(self.service.get_user_orders(self.buyer).value), 2)
        self.assertEqual(len(self.service.get_user_orders(self.buyer, Order.STATUS_COMPLETED).value), 1)
        self.assertEqual(self.service.get_user_orders(self.buyer, "lost").error, "invalid_input")

    def test_get_order_visibility(self):
        order = OrderFactory(buyer=self.buyer)

        self.assertTrue(self.service.get_order(order.id, self.buyer).ok)
        self.assertTrue(self.service.get_order(order.order_number, AdminFactory()).ok)
        self.assertEqual(self.service.get_order(order.id, UserFactory()).error, "not_order_owner")

    def test_stats(self):
        OrderFactory(status=Order.STATUS_COMPLETED, total=Decimal("10.50"))
        OrderFactory(status=Order.STATUS_COMPLETED, total=Decimal("20.00"))
        OrderFactory(status=Order.STATUS_CANCELLED)

        stats = self.service.get_stats().value

        self.assertEqual(stats["total_orders"], 3)
        self.assertEqual(stats["total_sales"], Decimal("30.50"))
        self.assertEqual(stats["by_status"], {"pending": 0, "completed": 2, "cancelled": 1})

    def test_monthly_sales_has_every_month(self):
        OrderFactory(status=Order.STATUS_COMPLETED, total=Decimal("15.00"))

        months = self.service.get_monthly_sales().value

        self.assertEqual([row["month"] for row in months], list(range(1, 13)))
        current = months[timezone.now().month - 1]
        self.assertEqual(current["order_count"], 1)
        self.assertEqual(current["total_sales"], Decimal("15.00"))
        self.assertEqual(self.service.get_monthly_sales("abc").error, "invalid_input")
