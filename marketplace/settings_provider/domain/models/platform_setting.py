from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class PlatformSetting(models.Model):
    """Single-row table of runtime platform settings editable by admins."""

    SINGLETON_ID = 1

    DEFAULTS = {
        "platform_name": "UTA Market Place",
        "support_email": "support@utamarketplace.edu",
        "items_per_page": 20,
        "commission_rate": Decimal("5.00"),
        "min_commission": Decimal("0.50"),
        "require_email_verification": True,
        "require_admin_approval": True,
        "enable_two_factor": True,
    }

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID, editable=False)
    platform_name = models.CharField(max_length=100, default=DEFAULTS["platform_name"])
    support_email = models.EmailField(default=DEFAULTS["support_email"])
    items_per_page = models.PositiveIntegerField(
        default=DEFAULTS["items_per_page"], validators=[MinValueValidator(1), MaxValueValidator(100)]
    )
    # Percentage of the subtotal, e.g. 5.00 means 5%
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=DEFAULTS["commission_rate"],
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    min_commission = models.DecimalField(
        max_digits=10, decimal_places=2, default=DEFAULTS["min_commission"], validators=[MinValueValidator(0)]
    )
    require_email_verification = models.BooleanField(default=DEFAULTS["require_email_verification"])
    require_admin_approval = models.BooleanField(default=DEFAULTS["require_admin_approval"])
    enable_two_factor = models.BooleanField(default=DEFAULTS["enable_two_factor"])
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"

    def __str__(self):
        return f"Platform settings ({self.platform_name})"
