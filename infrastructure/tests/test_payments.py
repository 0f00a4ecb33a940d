"""
Payment Infrastructure Tests
==============================

Unit tests for payment provider abstraction layer.
"""

from decimal import Decimal

import pytest
from django.test import SimpleTestCase, override_settings

from infrastructure.payments import (
    ChargeResult,
    MockPaymentProvider,
    PaymentFactory,
    PaymentProviderInterface,
    PaymentStatus,
)

pytestmark = pytest.mark.unit


class PaymentInterfaceTest(SimpleTestCase):
    def test_interface_is_abstract(self):
        """PaymentProviderInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            PaymentProviderInterface()


class MockPaymentProviderTest(SimpleTestCase):
    def setUp(self):
        self.provider = MockPaymentProvider()

    def test_charge_succeeds(self):
        result = self.provider.charge(
            amount=Decimal("78.75"),
            currency="usd",
            payment_type="card",
            payment_token="tok_visa",
            metadata={"order_number": "ORD-12345"},
        )

        self.assertIsInstance(result, ChargeResult)
        self.assertTrue(result.succeeded)
        self.assertTrue(result.transaction_id.startswith("mock_"))
        self.assertEqual(result.amount, Decimal("78.75"))
        self.assertEqual(result.metadata, {"order_number": "ORD-12345"})

    def test_paypal_is_supported(self):
        result = self.provider.charge(Decimal("10.00"), "usd", "paypal", "paypal-token")

        self.assertTrue(result.succeeded)

    def test_unsupported_type_is_declined(self):
        result = self.provider.charge(Decimal("10.00"), "usd", "crypto", "tok")

        self.assertFalse(result.succeeded)
        self.assertEqual(result.status, PaymentStatus.FAILED)
        self.assertEqual(result.failure_reason, "Invalid payment type")
        self.assertEqual(result.transaction_id, "")

    def test_missing_token_is_declined(self):
        for token in (None, "", "   "):
            result = self.provider.charge(Decimal("10.00"), "usd", "card", token)

            self.assertFalse(result.succeeded)
            self.assertEqual(result.failure_reason, "Payment method token is required")


class PaymentFactoryTest(SimpleTestCase):
    @override_settings(INFRASTRUCTURE={"PAYMENT_PROVIDER": "mock"})
    def test_create_from_settings(self):
        self.assertIsInstance(PaymentFactory.create(), MockPaymentProvider)

    def test_create_with_explicit_backend(self):
        self.assertIsInstance(PaymentFactory.create("mock"), MockPaymentProvider)

    def test_create_invalid_backend(self):
        """Test factory raises error for invalid backend."""
        with self.assertRaises(ValueError):
            PaymentFactory.create("stripe")


class PaymentStatusTest(SimpleTestCase):
    def test_payment_status_values(self):
        self.assertEqual(PaymentStatus.SUCCEEDED.value, "succeeded")
        self.assertEqual(PaymentStatus.FAILED.value, "failed")
