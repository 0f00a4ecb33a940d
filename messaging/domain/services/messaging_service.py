"""
MessagingService - product-anchored buyer/seller conversations.

Messages are persisted first; real-time delivery goes through the Channels
layer afterwards and never affects the stored state. Groups:

- ``user_<id>``: one per connected user (notifications, new conversations,
  order updates)
- ``conversation_<id>``: sockets that joined a conversation
"""

from typing import Dict, Iterable, List

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import IntegrityError, transaction
from django.db.models import F, OuterRef, Subquery, Sum

from marketplace.catalog.domain.models import Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from messaging.domain.models import Conversation, ConversationParticipant, Message
from messaging.infra.observability.metrics import messages_sent_total, realtime_broadcast_failures_total
from utils.rbac import is_admin

DEFAULT_MESSAGE_LIMIT = 50
MAX_MESSAGE_LIMIT = 200


def user_group(user_id) -> str:
    return f"user_{user_id}"


def conversation_group(conversation_id) -> str:
    return f"conversation_{conversation_id}"


def user_payload(user) -> Dict:
    return {"id": str(user.id), "name": user.display_name}


def message_payload(message: Message) -> Dict:
    return {
        "id": message.id,
        "conversation_id": str(message.conversation_id),
        "sender": user_payload(message.sender),
        "text": message.text,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat(),
    }


class MessagingService(BaseService):
    def __init__(self):
        super().__init__()
        self.channel_layer = get_channel_layer()

    # ------------------------------------------------------------------ #
    # Real-time fan-out
    # ------------------------------------------------------------------ #

    def broadcast(self, group: str, event: str, data: Dict, **extra) -> bool:
        """
        Send ``data`` to every socket in ``group``. ``event`` is the consumer
        handler name (``new_message`` -> ``new-message`` on the wire).
        """
        if self.channel_layer is None:
            return False
        try:
            async_to_sync(self.channel_layer.group_send)(group, {"type": event, "message": data, **extra})
            return True
        except Exception as e:
            realtime_broadcast_failures_total.labels(event=event).inc()
            self.logger.error(f"Failed to broadcast {event} to {group}: {e}")
            return False

    def notify_users(self, user_ids: Iterable, event: str, data: Dict):
        for user_id in set(str(uid) for uid in user_ids if uid):
            self.broadcast(user_group(user_id), event, data)

    def _fan_out_message(self, conversation: Conversation, message: Message):
        payload = message_payload(message)
        self.broadcast(
            conversation_group(conversation.id),
            "new_message",
            {"conversation_id": str(conversation.id), "message": payload},
        )

        recipients = (
            ConversationParticipant.objects.filter(conversation=conversation)
            .exclude(user_id=message.sender_id)
            .values_list("user_id", flat=True)
        )
        self.notify_users(
            recipients,
            "message_notification",
            {
                "conversation_id": str(conversation.id),
                "product_id": str(conversation.product_id),
                "message": payload,
                "sender": payload["sender"],
            },
        )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def _append(self, conversation: Conversation, sender, text: str) -> Message:
        """Insert a message, bump last_message_at and everyone else's unread count."""
        message = Message.objects.create(conversation=conversation, sender=sender, text=text)
        Conversation.objects.filter(pk=conversation.pk).update(last_message_at=message.created_at)
        ConversationParticipant.objects.filter(conversation=conversation).exclude(user=sender).update(
            unread_count=F("unread_count") + 1
        )
        conversation.last_message_at = message.created_at
        return message

    @BaseService.log_performance
    def create_conversation(self, buyer, product_id, text: str) -> ServiceResult[Dict]:
        """
        Start a conversation about a product, or continue the existing one.

        One conversation exists per (buyer, product): a repeated call appends
        ``text`` to it instead of creating a second one.

        Returns:
            ServiceResult with {"conversation", "message", "created"}

        Errors:
            EMPTY_MESSAGE, PRODUCT_NOT_FOUND, SELF_MESSAGE
        """
        text = (text or "").strip()
        if not text:
            return service_err(ErrorCodes.EMPTY_MESSAGE, "Message text is required")

        try:
            with transaction.atomic():
                product = (
                    Product.objects.select_for_update().select_related("seller").filter(id=product_id).first()
                )
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if product.seller_id == buyer.id:
                    return service_err(ErrorCodes.SELF_MESSAGE, "You cannot message yourself about your own product")

                conversation = Conversation.objects.filter(product=product, buyer=buyer).first()
                created = conversation is None
                if created:
                    conversation = Conversation.objects.create(product=product, buyer=buyer)
                    ConversationParticipant.objects.bulk_create(
                        [
                            ConversationParticipant(conversation=conversation, user=buyer, unread_count=0),
                            ConversationParticipant(conversation=conversation, user=product.seller, unread_count=0),
                        ]
                    )
                message = self._append(conversation, buyer, text)
        except IntegrityError as e:
            # Lost a race against a concurrent first message from the same buyer
            conversation = Conversation.objects.filter(product_id=product_id, buyer=buyer).first()
            if conversation is None:
                return self.internal_error("creating conversation", e)
            return self.send_message(conversation.id, buyer, text).map(
                lambda value: {**value, "created": False}
            )
        except Exception as e:
            return self.internal_error("creating conversation", e)

        messages_sent_total.labels(kind="first" if created else "reply").inc()
        if created:
            self.notify_users(
                [product.seller_id],
                "new_conversation",
                {
                    "conversation_id": str(conversation.id),
                    "product": {"id": str(product.id), "name": product.name},
                    "buyer": user_payload(buyer),
                    "message": message_payload(message),
                },
            )
        else:
            self._fan_out_message(conversation, message)

        return service_ok({"conversation": conversation, "message": message, "created": created})

    @BaseService.log_performance
    def send_message(self, conversation_id, sender, text: str) -> ServiceResult[Dict]:
        """
        Errors:
            EMPTY_MESSAGE, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        text = (text or "").strip()
        if not text:
            return service_err(ErrorCodes.EMPTY_MESSAGE, "Message text is required")

        try:
            with transaction.atomic():
                conversation = Conversation.objects.select_for_update().filter(id=conversation_id).first()
                if conversation is None:
                    return service_err(ErrorCodes.CONVERSATION_NOT_FOUND, "Conversation not found")
                if not self.is_participant(conversation.id, sender):
                    return service_err(ErrorCodes.NOT_PARTICIPANT, "You are not a participant in this conversation")
                message = self._append(conversation, sender, text)
        except Exception as e:
            return self.internal_error("sending message", e)

        messages_sent_total.labels(kind="reply").inc()
        self._fan_out_message(conversation, message)
        return service_ok({"conversation": conversation, "message": message})

    @BaseService.log_performance
    def mark_as_read(self, conversation_id, user) -> ServiceResult[Dict]:
        """
        Mark every message the other side sent as read and zero the user's
        unread counter.

        Errors:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            with transaction.atomic():
                if not Conversation.objects.filter(id=conversation_id).exists():
                    return service_err(ErrorCodes.CONVERSATION_NOT_FOUND, "Conversation not found")
                participant = (
                    ConversationParticipant.objects.select_for_update()
                    .filter(conversation_id=conversation_id, user=user)
                    .first()
                )
                if participant is None:
                    return service_err(ErrorCodes.NOT_PARTICIPANT, "You are not a participant in this conversation")

                updated = (
                    Message.objects.filter(conversation_id=conversation_id, is_read=False)
                    .exclude(sender=user)
                    .update(is_read=True)
                )
                participant.unread_count = 0
                participant.save(update_fields=["unread_count"])
        except Exception as e:
            return self.internal_error("marking messages as read", e)

        if updated:
            self.broadcast(
                conversation_group(conversation_id),
                "messages_read",
                {"conversation_id": str(conversation_id), "user_id": str(user.id)},
            )
        return service_ok({"marked_read": updated})

    @BaseService.log_performance
    def delete_conversation(self, conversation_id, user) -> ServiceResult[bool]:
        """
        Participants and admins may delete; messages and participants cascade.

        Errors:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            conversation = Conversation.objects.filter(id=conversation_id).first()
            if conversation is None:
                return service_err(ErrorCodes.CONVERSATION_NOT_FOUND, "Conversation not found")
            if not self.is_participant(conversation_id, user) and not is_admin(user):
                return service_err(ErrorCodes.NOT_PARTICIPANT, "You are not a participant in this conversation")
            conversation.delete()
            self.logger.info(f"Conversation {conversation_id} deleted by {user.id}")
            return service_ok(True)
        except Exception as e:
            return self.internal_error("deleting conversation", e)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def is_participant(self, conversation_id, user) -> bool:
        if not getattr(user, "is_authenticated", False):
            return False
        return ConversationParticipant.objects.filter(conversation_id=conversation_id, user_id=user.id).exists()

    @BaseService.log_performance
    def get_messages(
        self, conversation_id, user, limit: int = DEFAULT_MESSAGE_LIMIT, offset: int = 0
    ) -> ServiceResult[List[Message]]:
        """
        Messages oldest to newest, ``limit`` at a time starting at ``offset``.

        Errors:
            INVALID_INPUT, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            limit = int(limit)
            offset = int(offset)
        except (TypeError, ValueError):
            return service_err(ErrorCodes.INVALID_INPUT, "limit and offset must be integers")
        if limit < 1 or offset < 0:
            return service_err(ErrorCodes.INVALID_INPUT, "limit must be positive and offset non-negative")
        limit = min(limit, MAX_MESSAGE_LIMIT)

        try:
            if not Conversation.objects.filter(id=conversation_id).exists():
                return service_err(ErrorCodes.CONVERSATION_NOT_FOUND, "Conversation not found")
            if not self.is_participant(conversation_id, user):
                return service_err(ErrorCodes.NOT_PARTICIPANT, "You are not a participant in this conversation")

            messages = (
                Message.objects.filter(conversation_id=conversation_id)
                .select_related("sender")
                .order_by("created_at", "id")[offset : offset + limit]
            )
            return service_ok(list(messages))
        except Exception as e:
            return self.internal_error("loading messages", e)

    @BaseService.log_performance
    def get_user_conversations(self, user) -> ServiceResult[List[ConversationParticipant]]:
        """
        The user's participations, most recent activity first, each annotated
        with ``last_message_text`` and ``last_message_sender_id``.
        """
        try:
            latest = Message.objects.filter(conversation=OuterRef("conversation")).order_by("-created_at", "-id")
            rows = (
                ConversationParticipant.objects.filter(user=user)
                .select_related("conversation__product", "conversation__product__seller", "conversation__buyer")
                .annotate(
                    last_message_text=Subquery(latest.values("text")[:1]),
                    last_message_sender_id=Subquery(latest.values("sender_id")[:1]),
                )
                .order_by("-conversation__last_message_at")
            )
            return service_ok(list(rows))
        except Exception as e:
            return self.internal_error("loading conversations", e)

    @BaseService.log_performance
    def get_conversation(self, conversation_id, user) -> ServiceResult[Dict]:
        """
        Conversation with participants and its first page of messages.
        Opening a conversation marks it read for the caller.

        Errors:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        try:
            conversation = (
                Conversation.objects.select_related("product", "product__seller", "buyer")
                .filter(id=conversation_id)
                .first()
            )
            if conversation is None:
                return service_err(ErrorCodes.CONVERSATION_NOT_FOUND, "Conversation not found")
            if not self.is_participant(conversation_id, user):
                return service_err(ErrorCodes.NOT_PARTICIPANT, "You are not a participant in this conversation")
        except Exception as e:
            return self.internal_error("loading conversation", e)

        read_result = self.mark_as_read(conversation_id, user)
        if not read_result.ok:
            return read_result

        messages_result = self.get_messages(conversation_id, user)
        if not messages_result.ok:
            return messages_result

        participants = list(
            ConversationParticipant.objects.filter(conversation=conversation).select_related("user").order_by("id")
        )
        return service_ok({"conversation": conversation, "participants": participants, "messages": messages_result.value})

    @BaseService.log_performance
    def get_unread_count(self, user) -> ServiceResult[int]:
        try:
            total = ConversationParticipant.objects.filter(user=user).aggregate(total=Sum("unread_count"))["total"]
            return service_ok(total or 0)
        except Exception as e:
            return self.internal_error("counting unread messages", e)
