import logging

from django.core.cache import cache

from infrastructure.container import container
from infrastructure.events import get_event_bus


logger = logging.getLogger(__name__)

ORDER_EVENTS = ("order.placed", "order.completed", "order.cancelled")

# Every worker process runs a Redis listener and receives each event; the
# first one to claim the event id pushes the update
HANDLED_EVENT_TTL = 60 * 60


def claim_event(event_id) -> bool:
    """True if this process should handle ``event_id``."""
    if not event_id:
        return True
    try:
        return cache.add(f"events:order-update:{event_id}", 1, timeout=HANDLED_EVENT_TTL)
    except Exception as e:
        logger.warning(f"Could not claim event {event_id}, delivering anyway: {e}")
        return True


def handle_order_event(event_data):
    """Push an ``order-update`` to the buyer's and sellers' sockets."""
    try:
        event_type = event_data.get("event_type")
        payload = event_data.get("payload", {})

        if not claim_event(event_data.get("event_id")):
            logger.debug(f"[Messaging Listener] {event_type} {event_data.get('event_id')} already handled")
            return

        recipients = [payload.get("buyer_id"), *payload.get("seller_ids", [])]
        update = {
            "event": event_type,
            "order_id": payload.get("order_id"),
            "order_number": payload.get("order_number"),
        }
        container.messaging_service().notify_users(recipients, "order_update", update)
        logger.info(f"[Messaging Listener] {event_type} pushed for order {payload.get('order_number')}")
    except Exception as e:
        logger.error(f"Error handling order event: {e}")


def register_messaging_listeners():
    bus = get_event_bus()
    for event_type in ORDER_EVENTS:
        bus.subscribe(event_type, handle_order_event)
    logger.info("Messaging event listeners registered")
