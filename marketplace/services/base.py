"""
Base classes and utilities for the service layer.

Services return a ServiceResult instead of raising for expected failures.
Every error code belongs to one category of the marketplace error taxonomy
(not_found, forbidden, invalid_input, conflict, unavailable, server_fault),
which the API layer turns into an HTTP status.
"""

import logging
import math
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar

from django.conf import settings

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
        >>> result.category
        'not_found'
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    @property
    def category(self) -> Optional[str]:
        if self.ok:
            return None
        return ErrorCodes.category(self.error)

    def map(self, func: Callable[[T], Any]) -> "ServiceResult":
        """Transform the success value if ok=True, otherwise pass through error."""
        if self.ok:
            return service_ok(func(self.value))
        return self


def service_ok(value: T = None) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Example:
        >>> return service_ok({"removed": 2})
    """
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., ErrorCodes.CART_EMPTY)
        error_detail: Human-readable error message

    Example:
        >>> return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} does not exist")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class CartService(BaseService):
            def __init__(self, pricing_service):
                super().__init__()
                self.pricing_service = pricing_service

            @BaseService.log_performance
            def get_cart(self, user):
                ...
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time, failed results and any exception that escapes.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper

    def internal_error(self, action: str, exc: Exception) -> ServiceResult:
        """Log an unexpected failure with full context and hide it behind INTERNAL_ERROR."""
        self.logger.error(f"Error {action}: {exc}", exc_info=True)
        return service_err(ErrorCodes.INTERNAL_ERROR, f"Failed {action}")


class ErrorCodes:
    """Standard error codes used across marketplace services."""

    # Taxonomy categories
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID = "invalid_input"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    SERVER_FAULT = "server_fault"

    # Product errors
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    INVALID_PRODUCT_DATA = "invalid_product_data"
    INVALID_PRODUCT_STATE = "invalid_product_state"

    # Cart errors
    CART_EMPTY = "cart_empty"
    INVALID_QUANTITY = "invalid_quantity"
    ITEM_NOT_IN_CART = "item_not_in_cart"
    SELF_PURCHASE = "self_purchase"

    # Order errors
    ORDER_NOT_FOUND = "order_not_found"
    ORDER_ALREADY_PAID = "order_already_paid"
    ORDER_CANNOT_CANCEL = "order_cannot_cancel"
    INVALID_ORDER_STATE = "invalid_order_state"
    INVALID_PAYMENT_METHOD = "invalid_payment_method"
    PAYMENT_FAILED = "payment_failed"
    ORDER_NUMBER_EXHAUSTED = "order_number_exhausted"

    # Messaging errors
    CONVERSATION_NOT_FOUND = "conversation_not_found"
    NOT_PARTICIPANT = "not_participant"
    SELF_MESSAGE = "self_message"
    EMPTY_MESSAGE = "empty_message"

    # Review errors
    REVIEW_NOT_FOUND = "review_not_found"
    INVALID_RATING = "invalid_rating"
    ALREADY_REVIEWED = "already_reviewed"
    NOT_PURCHASED = "not_purchased"
    SELLER_MISMATCH = "seller_mismatch"
    SELF_REVIEW = "self_review"

    # Report errors
    REPORT_NOT_FOUND = "report_not_found"
    ALREADY_REPORTED = "already_reported"
    SELF_REPORT = "self_report"

    # User errors
    USER_NOT_FOUND = "user_not_found"
    EMAIL_TAKEN = "email_taken"
    INVALID_CREDENTIALS = "invalid_credentials"

    # Permission errors
    PERMISSION_DENIED = "permission_denied"
    NOT_ORDER_OWNER = "not_order_owner"

    # Validation errors
    VALIDATION_ERROR = "validation_error"
    INVALID_INPUT = "invalid_input"

    # Internal errors
    INTERNAL_ERROR = "internal_error"

    _CATEGORIES = {
        PRODUCT_NOT_FOUND: NOT_FOUND,
        ITEM_NOT_IN_CART: NOT_FOUND,
        ORDER_NOT_FOUND: NOT_FOUND,
        CONVERSATION_NOT_FOUND: NOT_FOUND,
        REVIEW_NOT_FOUND: NOT_FOUND,
        REPORT_NOT_FOUND: NOT_FOUND,
        USER_NOT_FOUND: NOT_FOUND,
        PERMISSION_DENIED: FORBIDDEN,
        NOT_ORDER_OWNER: FORBIDDEN,
        NOT_PARTICIPANT: FORBIDDEN,
        NOT_PURCHASED: FORBIDDEN,
        INVALID_PRODUCT_DATA: INVALID,
        CART_EMPTY: INVALID,
        INVALID_QUANTITY: INVALID,
        SELF_PURCHASE: INVALID,
        INVALID_PAYMENT_METHOD: INVALID,
        PAYMENT_FAILED: INVALID,
        SELF_MESSAGE: INVALID,
        EMPTY_MESSAGE: INVALID,
        INVALID_RATING: INVALID,
        SELLER_MISMATCH: INVALID,
        SELF_REVIEW: INVALID,
        SELF_REPORT: INVALID,
        VALIDATION_ERROR: INVALID,
        INVALID_INPUT: INVALID,
        EMAIL_TAKEN: INVALID,
        INVALID_CREDENTIALS: INVALID,
        ORDER_ALREADY_PAID: CONFLICT,
        ORDER_CANNOT_CANCEL: CONFLICT,
        INVALID_ORDER_STATE: CONFLICT,
        INVALID_PRODUCT_STATE: CONFLICT,
        ALREADY_REVIEWED: CONFLICT,
        ALREADY_REPORTED: CONFLICT,
        PRODUCT_UNAVAILABLE: UNAVAILABLE,
        ORDER_NUMBER_EXHAUSTED: SERVER_FAULT,
        INTERNAL_ERROR: SERVER_FAULT,
    }

    @classmethod
    def category(cls, code: Optional[str]) -> str:
        """Taxonomy category for an error code; unknown codes are server faults."""
        return cls._CATEGORIES.get(code, cls.SERVER_FAULT)


def get_page_params(page=None, page_size=None) -> tuple:
    """Coerce raw page / page_size values into sane positive integers."""
    config = getattr(settings, "MARKETPLACE", {})
    default_size = config.get("DEFAULT_PAGE_SIZE", 10)
    max_size = config.get("MAX_PAGE_SIZE", 100)

    try:
        page = max(int(page), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = min(max(int(page_size), 1), max_size)
    except (TypeError, ValueError):
        page_size = default_size
    return page, page_size


def paginate(queryset, page=None, page_size=None) -> dict:
    """
    Slice a queryset into one page.

    Returns:
        Dict with the page's ``results`` plus ``count`` (rows on this page),
        ``total``, ``total_pages`` and ``current_page``.
    """
    page, page_size = get_page_params(page, page_size)
    total = queryset.count()
    offset = (page - 1) * page_size
    results = list(queryset[offset : offset + page_size])
    return {
        "results": results,
        "count": len(results),
        "total": total,
        "total_pages": math.ceil(total / page_size) if total else 0,
        "current_page": page,
    }
