from rest_framework import serializers

from messaging.domain.models import ConversationParticipant, Message


class ParticipantUserSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(source="display_name", read_only=True)


class MessageSerializer(serializers.ModelSerializer):
    conversation_id = serializers.UUIDField(read_only=True)
    sender = ParticipantUserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = ("id", "conversation_id", "sender", "text", "is_read", "created_at")


class ConversationProductSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    status = serializers.CharField(read_only=True)


class ConversationSummarySerializer(serializers.ModelSerializer):
    """One row of the inbox, built from the caller's participation."""

    id = serializers.UUIDField(source="conversation.id", read_only=True)
    product = ConversationProductSerializer(source="conversation.product", read_only=True)
    other_user = serializers.SerializerMethodField()
    last_message = serializers.CharField(source="last_message_text", read_only=True, allow_null=True)
    last_message_sender_id = serializers.UUIDField(read_only=True, allow_null=True)
    last_message_at = serializers.DateTimeField(source="conversation.last_message_at", read_only=True)

    class Meta:
        model = ConversationParticipant
        fields = ("id", "product", "other_user", "last_message", "last_message_sender_id", "last_message_at", "unread_count")

    def get_other_user(self, obj):
        conversation = obj.conversation
        other = conversation.product.seller if obj.user_id == conversation.buyer_id else conversation.buyer
        return {"id": str(other.id), "name": other.display_name}


class ParticipantSerializer(serializers.ModelSerializer):
    user = ParticipantUserSerializer(read_only=True)

    class Meta:
        model = ConversationParticipant
        fields = ("user", "unread_count", "joined_at")


class ConversationDetailSerializer(serializers.Serializer):
    id = serializers.UUIDField(source="conversation.id", read_only=True)
    product = ConversationProductSerializer(source="conversation.product", read_only=True)
    created_at = serializers.DateTimeField(source="conversation.created_at", read_only=True)
    last_message_at = serializers.DateTimeField(source="conversation.last_message_at", read_only=True)
    participants = ParticipantSerializer(many=True, read_only=True)
    messages = MessageSerializer(many=True, read_only=True)


class StartConversationSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=True)
    text = serializers.CharField(required=True, allow_blank=False, trim_whitespace=True, max_length=5000)


class SendMessageSerializer(serializers.Serializer):
    text = serializers.CharField(required=True, allow_blank=False, trim_whitespace=True, max_length=5000)
