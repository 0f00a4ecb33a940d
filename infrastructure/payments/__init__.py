"""
Payment Service Abstraction Layer
==================================

Provides a unified interface for checkout payments across providers.
"""

from .factory import PaymentFactory
from .interface import ChargeResult, PaymentProviderInterface, PaymentStatus
from .mock_provider import MockPaymentProvider

__all__ = [
    "PaymentProviderInterface",
    "ChargeResult",
    "PaymentStatus",
    "MockPaymentProvider",
    "PaymentFactory",
]
