import logging

import redis
from asgiref.sync import sync_to_async
from django.conf import settings


logger = logging.getLogger(__name__)


class ChannelThrottlingMiddleware:
    """
    Fixed-window limit on WebSocket handshakes per client IP, counted in Redis.

    Configured by ``WEBSOCKET_THROTTLE`` (``LIMIT`` handshakes per ``WINDOW``
    seconds). Throttled handshakes are closed with 4029.
    """

    CLOSE_CODE = 4029

    def __init__(self, inner):
        self.inner = inner
        config = getattr(settings, "WEBSOCKET_THROTTLE", {})
        self.enabled = config.get("ENABLED", True)
        self.limit = config.get("LIMIT", 60)
        self.window = config.get("WINDOW", 60)
        self.redis_url = config.get("REDIS_URL") or getattr(settings, "REDIS_URL", "redis://localhost:6379/0")
        self._redis_client = None

    @property
    def redis(self):
        if self._redis_client is None:
            self._redis_client = redis.from_url(self.redis_url)
        return self._redis_client

    async def __call__(self, scope, receive, send):
        if self.enabled and scope["type"] == "websocket":
            client = scope.get("client")
            if client:
                ip = client[0]
                if not await self.is_allowed(ip):
                    logger.warning(f"WebSocket connection throttled for IP: {ip}")
                    await send({"type": "websocket.close", "code": self.CLOSE_CODE})
                    return

        return await self.inner(scope, receive, send)

    async def is_allowed(self, ip: str) -> bool:
        # sync redis client, kept off the event loop
        return await sync_to_async(self._check_redis)(f"ws_throttle:{ip}")

    def _check_redis(self, key):
        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window, nx=True)
            count = pipe.execute()[0]
            return count <= self.limit
        except redis.RedisError as e:
            # Fail open when Redis is down
            logger.error(f"Error checking WS throttle in Redis: {str(e)}")
            return True
