"""
Platform settings provider.

Wraps the single PlatformSetting row behind an injectable service. Reads are
served from the Django cache and every write invalidates it explicitly.
"""

from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.cache import cache
from django.db import transaction

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from marketplace.settings_provider.domain.models import PlatformSetting


class SettingsService(BaseService):
    CACHE_KEY = "marketplace:platform_settings"

    EDITABLE_FIELDS = (
        "platform_name",
        "support_email",
        "items_per_page",
        "commission_rate",
        "min_commission",
        "require_email_verification",
        "require_admin_approval",
        "enable_two_factor",
    )

    def __init__(self):
        super().__init__()
        self.cache_timeout = getattr(settings, "MARKETPLACE", {}).get("SETTINGS_CACHE_TIMEOUT", 300)

    def get_settings(self) -> PlatformSetting:
        """Return the settings row, creating it with defaults on first use."""
        current = cache.get(self.CACHE_KEY)
        if current is None:
            current, created = PlatformSetting.objects.get_or_create(pk=PlatformSetting.SINGLETON_ID)
            if created:
                self.logger.info("Initialized platform settings with defaults")
            cache.set(self.CACHE_KEY, current, self.cache_timeout)
        return current

    def invalidate(self) -> None:
        cache.delete(self.CACHE_KEY)

    # Typed accessors used by the pricing and catalog services

    def commission_rate(self) -> Decimal:
        """Commission as a fraction of the subtotal (5.00% -> 0.05)."""
        return Decimal(self.get_settings().commission_rate) / Decimal("100")

    def min_commission(self) -> Decimal:
        return Decimal(self.get_settings().min_commission)

    def requires_admin_approval(self) -> bool:
        return self.get_settings().require_admin_approval

    def items_per_page(self) -> int:
        return self.get_settings().items_per_page

    @BaseService.log_performance
    def update_settings(self, changes: dict) -> ServiceResult[PlatformSetting]:
        """
        Partially update the settings row.

        Keys that are absent or None keep their current value.
        """
        try:
            cleaned = {}
            for field in self.EDITABLE_FIELDS:
                value = changes.get(field)
                if value is not None:
                    cleaned[field] = value

            for field in ("commission_rate", "min_commission"):
                if field in cleaned:
                    try:
                        cleaned[field] = Decimal(str(cleaned[field]))
                    except (InvalidOperation, ValueError):
                        return service_err(ErrorCodes.VALIDATION_ERROR, f"{field} must be a number")
                    if not cleaned[field].is_finite():
                        return service_err(ErrorCodes.VALIDATION_ERROR, f"{field} must be a finite number")
                    if cleaned[field] < 0:
                        return service_err(ErrorCodes.VALIDATION_ERROR, f"{field} cannot be negative")
            if cleaned.get("commission_rate", 0) > 100:
                return service_err(ErrorCodes.VALIDATION_ERROR, "commission_rate is a percentage (0-100)")
            if "items_per_page" in cleaned:
                try:
                    cleaned["items_per_page"] = int(cleaned["items_per_page"])
                except (TypeError, ValueError):
                    return service_err(ErrorCodes.VALIDATION_ERROR, "items_per_page must be an integer")
                if not 1 <= cleaned["items_per_page"] <= 100:
                    return service_err(ErrorCodes.VALIDATION_ERROR, "items_per_page must be between 1 and 100")

            with transaction.atomic():
                current, _ = PlatformSetting.objects.select_for_update().get_or_create(
                    pk=PlatformSetting.SINGLETON_ID
                )
                for field, value in cleaned.items():
                    setattr(current, field, value)
                current.save()

            self.invalidate()
            self.logger.info(f"Platform settings updated: {sorted(cleaned)}")
            return service_ok(current)
        except Exception as e:
            return self.internal_error("updating platform settings", e)

    @BaseService.log_performance
    def reset_to_defaults(self) -> ServiceResult[PlatformSetting]:
        try:
            with transaction.atomic():
                current, _ = PlatformSetting.objects.select_for_update().get_or_create(
                    pk=PlatformSetting.SINGLETON_ID
                )
                for field, value in PlatformSetting.DEFAULTS.items():
                    setattr(current, field, value)
                current.save()

            self.invalidate()
            self.logger.info("Platform settings reset to defaults")
            return service_ok(current)
        except Exception as e:
            return self.internal_error("resetting platform settings", e)
