from messaging.domain.models import Conversation, ConversationParticipant, Message


__all__ = ["Conversation", "ConversationParticipant", "Message"]
