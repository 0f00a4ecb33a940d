import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class MessagingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "messaging"

    def ready(self):
        """
        Push order updates to buyers' and sellers' sockets.
        """
        try:
            from infrastructure.events import get_event_bus
            from messaging.infra.events.listeners import register_messaging_listeners

            register_messaging_listeners()

            if settings.INFRASTRUCTURE.get("EVENT_BUS_LISTEN", True):
                get_event_bus().start_listening()
        except Exception as e:
            logger.warning(f"Failed to initialize Event Bus listeners: {e}")
