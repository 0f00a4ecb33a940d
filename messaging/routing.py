from django.urls import re_path

from messaging.api.consumers import MessagingConsumer


websocket_urlpatterns = [
    re_path(r"ws/messages/$", MessagingConsumer.as_asgi()),
]
