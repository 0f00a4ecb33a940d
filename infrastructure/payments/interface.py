"""
Payment Provider Interface
===========================

Abstract base class defining the contract for checkout payments.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ChargeResult:
    """
    Outcome of a charge attempt.

    Attributes:
        transaction_id: Provider reference for the charge (empty when failed)
        amount: Charged amount
        currency: ISO currency code
        status: SUCCEEDED or FAILED
        failure_reason: Human-readable reason when the charge failed
        metadata: Additional custom data echoed back
    """

    transaction_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    failure_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment provider operations.

    Concrete implementations:
        - MockPaymentProvider: simulated checkout, no external call
    """

    SUPPORTED_PAYMENT_TYPES = ("card", "paypal")

    @abstractmethod
    def charge(
        self,
        amount: Decimal,
        currency: str,
        payment_type: str,
        payment_token: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChargeResult:
        """
        Charge the buyer for an order.

        Args:
            amount: Amount to charge
            currency: ISO currency code
            payment_type: 'card' or 'paypal'
            payment_token: Tokenized payment method from the client
            metadata: Custom data to attach to the charge

        Returns:
            ChargeResult; declined charges are returned, not raised
        """
