"""
Payment Provider Factory
=========================

Factory pattern for creating payment provider instances based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import PaymentProviderInterface
from .mock_provider import MockPaymentProvider

logger = logging.getLogger(__name__)

PaymentBackend = Literal["mock"]


class PaymentFactory:
    """
    Factory for creating payment provider instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"PAYMENT_PROVIDER": "mock"}

        # In your code
        payment_provider = PaymentFactory.create()
    """

    @staticmethod
    def create(backend: PaymentBackend | None = None) -> PaymentProviderInterface:
        """
        Create a payment provider instance.

        Raises:
            ValueError: If backend type is invalid
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("PAYMENT_PROVIDER", "mock")

        logger.info(f"Creating payment provider: {backend_type}")

        if backend_type == "mock":
            return MockPaymentProvider()
        raise ValueError(f"Invalid payment provider: {backend_type}. Currently only 'mock' is supported")
