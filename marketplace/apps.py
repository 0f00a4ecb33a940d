import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"

    def ready(self):
        try:
            from infrastructure.observability import setup_tracing

            setup_tracing(
                service_name=getattr(settings, "OTEL_SERVICE_NAME", "campusmarket-backend"),
                console_export=getattr(settings, "OTEL_CONSOLE_EXPORT", False),
                enable=getattr(settings, "OTEL_TRACING_ENABLED", False),
            )
        except Exception as e:
            logger.error(f"Failed to initialize tracing: {e}")
