"""
ASGI config for campusmarketBackend project.

It exposes the ASGI callable as a module-level variable named ``application``.
"""

import os

import django
from channels.auth import AuthMiddlewareStack
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator
from django.core.asgi import get_asgi_application


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "campusmarketBackend.settings")

# Initialize Django ASGI application early to ensure the AppRegistry
# is populated before importing code that may import ORM models.
django.setup()

django_asgi_app = get_asgi_application()

import messaging.routing  # noqa: E402
from messaging.middleware import ChannelThrottlingMiddleware, HandshakeAuthMiddleware  # noqa: E402


application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        # Messaging socket with session/JWT authentication and handshake throttling
        "websocket": ChannelThrottlingMiddleware(
            AllowedHostsOriginValidator(
                AuthMiddlewareStack(HandshakeAuthMiddleware(URLRouter(messaging.routing.websocket_urlpatterns)))
            )
        ),
    }
)
