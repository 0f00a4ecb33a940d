"""
Human-readable order numbers.

``ORD-`` plus five random digits. The space is small, so uniqueness is enforced
by the database and a colliding insert is retried with a fresh number.
"""

import secrets

from django.conf import settings
from django.db import IntegrityError, transaction
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from marketplace.infra.observability.metrics import order_number_collisions_total
from marketplace.ordering.domain.models import Order

ORDER_NUMBER_PREFIX = "ORD-"


class OrderNumberConflict(Exception):
    """Every attempted order number was already taken."""


def generate_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}{10000 + secrets.randbelow(90000)}"


def max_attempts() -> int:
    return getattr(settings, "MARKETPLACE", {}).get("ORDER_NUMBER_MAX_ATTEMPTS", 5)


def create_order_with_unique_number(**fields) -> Order:
    """
    Insert an Order under a fresh order number, retrying on collision.

    Each attempt runs in its own savepoint so a collision does not poison the
    caller's transaction.

    Raises:
        OrderNumberConflict: after ``ORDER_NUMBER_MAX_ATTEMPTS`` collisions
    """
    retryer = Retrying(
        stop=stop_after_attempt(max_attempts()),
        retry=retry_if_exception_type(OrderNumberConflict),
        reraise=True,
    )
    for attempt in retryer:
        with attempt:
            number = generate_order_number()
            try:
                with transaction.atomic():
                    return Order.objects.create(order_number=number, **fields)
            except IntegrityError as e:
                if not Order.objects.filter(order_number=number).exists():
                    raise
                order_number_collisions_total.inc()
                raise OrderNumberConflict(f"Order number {number} already exists") from e
