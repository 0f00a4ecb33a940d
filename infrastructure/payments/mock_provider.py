"""
Mock Payment Provider
=====================

Simulated checkout used by the marketplace: no money moves and no external
service is called. A charge succeeds when the payment type is supported and
a non-empty payment token is supplied.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

from .interface import ChargeResult, PaymentProviderInterface, PaymentStatus

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    def charge(
        self,
        amount: Decimal,
        currency: str,
        payment_type: str,
        payment_token: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChargeResult:
        metadata = metadata or {}

        if payment_type not in self.SUPPORTED_PAYMENT_TYPES:
            return self._declined(amount, currency, metadata, "Invalid payment type")
        if not payment_token or not str(payment_token).strip():
            return self._declined(amount, currency, metadata, "Payment method token is required")

        result = ChargeResult(
            transaction_id=f"mock_{uuid.uuid4().hex}",
            amount=amount,
            currency=currency,
            status=PaymentStatus.SUCCEEDED,
            metadata=metadata,
        )
        logger.info(f"[MOCK PAYMENT] Charged {amount} {currency} via {payment_type} ({result.transaction_id})")
        return result

    def _declined(self, amount, currency, metadata, reason) -> ChargeResult:
        logger.info(f"[MOCK PAYMENT] Declined {amount} {currency}: {reason}")
        return ChargeResult(
            transaction_id="",
            amount=amount,
            currency=currency,
            status=PaymentStatus.FAILED,
            failure_reason=reason,
            metadata=metadata,
        )
