"""
Service Container Tests
========================

Unit tests for dependency injection container.
"""

import pytest
from django.test import TestCase

from infrastructure.container import ServiceContainer, container
from infrastructure.events import InMemoryEventBus
from infrastructure.payments import MockPaymentProvider, PaymentProviderInterface

pytestmark = pytest.mark.unit


class ServiceContainerTest(TestCase):
    """Test ServiceContainer implementation."""

    def setUp(self):
        container.reset()

    def test_container_is_singleton(self):
        container1 = ServiceContainer()
        container2 = ServiceContainer()

        self.assertIs(container1, container2)
        self.assertIs(container1, container)

    def test_get_payment_service(self):
        """Test getting payment service from container."""
        payment = container.payment()

        self.assertIsInstance(payment, PaymentProviderInterface)
        self.assertIsInstance(payment, MockPaymentProvider)

        # Second call should return cached instance
        self.assertIs(payment, container.payment())

    def test_event_bus_uses_configured_backend(self):
        self.assertIsInstance(container.event_bus(), InMemoryEventBus)

    def test_order_service_is_wired_with_shared_collaborators(self):
        orders = container.order_service()

        self.assertIs(orders.cart_service, container.cart_service())
        self.assertIs(orders.pricing_service, container.pricing_service())
        self.assertIs(orders.payment_provider, container.payment())
        self.assertIs(container.cart_service().pricing_service.settings_service, container.settings_service())

    def test_review_service_shares_rating_service(self):
        self.assertIs(container.review_service().rating_service, container.rating_service())
        self.assertIs(container.report_service().catalog_service, container.catalog_service())

    def test_admin_service_reuses_order_and_report_services(self):
        admin = container.admin_service()

        self.assertIs(admin.order_service, container.order_service())
        self.assertIs(admin.report_service, container.report_service())
        self.assertIs(container.account_service(), container.account_service())

    def test_reset_container(self):
        """Test resetting container clears cached instances."""
        payment1 = container.payment()
        orders1 = container.order_service()

        container.reset()

        self.assertIsNot(payment1, container.payment())
        self.assertIsNot(orders1, container.order_service())
