from django.urls import path

from messaging.api.views import ConversationViewSet


app_name = "messaging"

urlpatterns = [
    path("", ConversationViewSet.as_view({"get": "list", "post": "create"}), name="conversations"),
    path("unread/count/", ConversationViewSet.as_view({"get": "unread_count"}), name="unread-count"),
    path(
        "<uuid:pk>/",
        ConversationViewSet.as_view({"get": "retrieve", "post": "send", "delete": "destroy"}),
        name="conversation-detail",
    ),
    path("<uuid:pk>/messages/", ConversationViewSet.as_view({"get": "messages"}), name="conversation-messages"),
    path("<uuid:pk>/read/", ConversationViewSet.as_view({"put": "mark_read"}), name="conversation-read"),
]
