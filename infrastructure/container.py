"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure and domain
services. Infrastructure is reached through its abstract interfaces; domain
services are wired with their collaborators here instead of importing each
other.

Usage:
    from infrastructure.container import container

    cart = container.cart_service()
    orders = container.order_service()
    payment = container.payment()
"""

import logging
from typing import Optional

from .events import EventBus, get_event_bus
from .payments import PaymentFactory, PaymentProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure and domain services.

    Implements lazy initialization and caching of service instances.
    Thread-safe singleton pattern.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        self._payment: Optional[PaymentProviderInterface] = None
        self._event_bus: Optional[EventBus] = None

        # Domain Services
        self._settings_service = None
        self._pricing_service = None
        self._catalog_service = None
        self._cart_service = None
        self._order_service = None
        self._rating_service = None
        self._review_service = None
        self._report_service = None
        self._messaging_service = None
        self._account_service = None
        self._admin_service = None

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: Payment backend type ('mock')
                    If None, uses configuration from settings

        Returns:
            PaymentProviderInterface implementation (cached)
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")

        return self._payment

    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = get_event_bus()
        return self._event_bus

    def settings_service(self):
        """Get SettingsService instance."""
        if self._settings_service is None:
            from marketplace.settings_provider.domain.services import SettingsService

            self._settings_service = SettingsService()
            logger.debug("Created SettingsService")
        return self._settings_service

    def pricing_service(self):
        """Get PricingService instance."""
        if self._pricing_service is None:
            from marketplace.cart.domain.services import PricingService

            self._pricing_service = PricingService(settings_service=self.settings_service())
            logger.debug("Created PricingService")
        return self._pricing_service

    def catalog_service(self):
        """Get CatalogService instance."""
        if self._catalog_service is None:
            from marketplace.catalog.domain.services import CatalogService

            self._catalog_service = CatalogService(settings_service=self.settings_service())
            logger.debug("Created CatalogService")
        return self._catalog_service

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.cart.domain.services import CartService

            self._cart_service = CartService(
                pricing_service=self.pricing_service(), catalog_service=self.catalog_service()
            )
            logger.debug("Created CartService")
        return self._cart_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.ordering.domain.services import OrderService

            self._order_service = OrderService(
                cart_service=self.cart_service(),
                pricing_service=self.pricing_service(),
                catalog_service=self.catalog_service(),
                payment_provider=self.payment(),
                event_bus=self.event_bus(),
            )
            logger.debug("Created OrderService")
        return self._order_service

    def rating_service(self):
        """Get SellerRatingService instance."""
        if self._rating_service is None:
            from marketplace.reviews.domain.services import SellerRatingService

            self._rating_service = SellerRatingService()
        return self._rating_service

    def review_service(self):
        """Get ReviewService instance."""
        if self._review_service is None:
            from marketplace.reviews.domain.services import ReviewService

            self._review_service = ReviewService(rating_service=self.rating_service(), event_bus=self.event_bus())
            logger.debug("Created ReviewService")
        return self._review_service

    def report_service(self):
        """Get ReportService instance."""
        if self._report_service is None:
            from marketplace.moderation.domain.services import ReportService

            self._report_service = ReportService(catalog_service=self.catalog_service())
            logger.debug("Created ReportService")
        return self._report_service

    def messaging_service(self):
        """Get MessagingService instance."""
        if self._messaging_service is None:
            from messaging.domain.services import MessagingService

            self._messaging_service = MessagingService()
            logger.debug("Created MessagingService")
        return self._messaging_service

    def account_service(self):
        """Get AccountService instance."""
        if self._account_service is None:
            from authentication.domain.services import AccountService

            self._account_service = AccountService()
            logger.debug("Created AccountService")
        return self._account_service

    def admin_service(self):
        """Get AdminService instance."""
        if self._admin_service is None:
            from marketplace.administration.domain.services import AdminService

            self._admin_service = AdminService(
                order_service=self.order_service(), report_service=self.report_service()
            )
            logger.debug("Created AdminService")
        return self._admin_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")


# Global singleton instance
container = ServiceContainer()
