from .event_bus_interface import EventBus
from .factory import get_event_bus
from .memory_event_bus import InMemoryEventBus
from .redis_event_bus import RedisEventBus


__all__ = ["EventBus", "InMemoryEventBus", "RedisEventBus", "get_event_bus"]
