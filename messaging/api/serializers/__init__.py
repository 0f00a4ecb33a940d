from .conversation_serializers import (
    ConversationDetailSerializer,
    ConversationSummarySerializer,
    MessageSerializer,
    SendMessageSerializer,
    StartConversationSerializer,
)


__all__ = [
    "ConversationDetailSerializer",
    "ConversationSummarySerializer",
    "MessageSerializer",
    "SendMessageSerializer",
    "StartConversationSerializer",
]
