"""
Marketplace Service Layer

Shared plumbing for the domain services. The services themselves live with
their domain (``marketplace.<domain>.domain.services``) and are wired by
``infrastructure.container``.

Usage:
    from marketplace.services import BaseService, ErrorCodes, service_ok, service_err

    result = container.cart_service().get_cart(user)

    if result.ok:
        cart = result.value
    else:
        error = result.error
"""

from .base import (
    BaseService,
    ErrorCodes,
    ServiceResult,
    get_page_params,
    paginate,
    service_err,
    service_ok,
)


__all__ = [
    "BaseService",
    "ErrorCodes",
    "ServiceResult",
    "get_page_params",
    "paginate",
    "service_err",
    "service_ok",
]
