import json
import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from infrastructure.container import container
from messaging.domain.services.messaging_service import conversation_group, user_group


logger = logging.getLogger(__name__)


class MessagingConsumer(AsyncWebsocketConsumer):
    """
    One socket per signed-in user.

    Client envelope: ``{"type": "<event>", "payload": {...}}``.
    Server envelope: ``{"type": "<event>", "data": {...}}``; failures are sent
    as ``{"type": "error", "code": ..., "message": ...}``.
    """

    async def connect(self):
        self.user = self.scope.get("user")

        if self.user is None or not self.user.is_authenticated:
            logger.warning(f"Unauthenticated connection attempt to {self.channel_name}")
            await self.close(code=4001)  # Unauthorized
            return

        self.user_group_name = user_group(self.user.id)
        self.joined_conversations = set()

        await self.channel_layer.group_add(self.user_group_name, self.channel_name)
        await self.accept()
        logger.info(f"User {self.user.id} connected to messaging")

    async def disconnect(self, close_code):
        if hasattr(self, "user_group_name"):
            await self.channel_layer.group_discard(self.user_group_name, self.channel_name)
        for conversation_id in getattr(self, "joined_conversations", set()):
            await self.channel_layer.group_discard(conversation_group(conversation_id), self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON", code="invalid_json")
            return

        if not isinstance(data, dict):
            await self.send_error("Invalid message format", code="invalid_json")
            return

        handlers = {
            "join-conversation": self.handle_join,
            "leave-conversation": self.handle_leave,
            "send-message": self.handle_send_message,
            "mark-as-read": self.handle_mark_as_read,
            "typing": self.handle_typing,
            "stop-typing": self.handle_stop_typing,
        }
        handler = handlers.get(data.get("type"))
        if handler is None:
            await self.send_error("Unknown message type", code="unknown_type")
            return

        payload = data.get("payload") or {}
        try:
            await handler(payload)
        except Exception as e:
            logger.error(f"Error handling {data.get('type')} for user {self.user.id}: {e}", exc_info=True)
            await self.send_error("Internal server error", code="internal_error")

    # ------------------------------------------------------------------ #
    # Client events
    # ------------------------------------------------------------------ #

    async def handle_join(self, payload):
        conversation_id = self.parse_conversation_id(payload)
        if conversation_id is None:
            await self.send_error("conversation_id is required", code="invalid_input")
            return

        if not await self.check_participant(conversation_id):
            logger.warning(f"User {self.user.id} denied access to conversation {conversation_id}")
            await self.send_error("You are not a participant in this conversation", code="not_participant")
            return

        await self.channel_layer.group_add(conversation_group(conversation_id), self.channel_name)
        self.joined_conversations.add(conversation_id)
        await self.send_event("joined-conversation", {"conversation_id": conversation_id})

    async def handle_leave(self, payload):
        conversation_id = self.parse_conversation_id(payload)
        if conversation_id is None:
            return
        await self.channel_layer.group_discard(conversation_group(conversation_id), self.channel_name)
        self.joined_conversations.discard(conversation_id)

    async def handle_send_message(self, payload):
        conversation_id = self.parse_conversation_id(payload)
        if conversation_id is None:
            await self.send_error("conversation_id is required", code="invalid_input")
            return

        # Persists, then fans out to the conversation group (this socket included)
        result = await self.run_service("send_message", conversation_id, self.user, payload.get("text"))
        if not result.ok:
            await self.send_error(result.error_detail, code=result.error)

    async def handle_mark_as_read(self, payload):
        conversation_id = self.parse_conversation_id(payload)
        if conversation_id is None:
            await self.send_error("conversation_id is required", code="invalid_input")
            return

        result = await self.run_service("mark_as_read", conversation_id, self.user)
        if not result.ok:
            await self.send_error(result.error_detail, code=result.error)

    async def handle_typing(self, payload):
        await self.relay_typing(payload, "user_typing")

    async def handle_stop_typing(self, payload):
        await self.relay_typing(payload, "user_stop_typing")

    async def relay_typing(self, payload, event):
        conversation_id = self.parse_conversation_id(payload)
        if conversation_id not in self.joined_conversations:
            await self.send_error("Join the conversation first", code="not_joined")
            return

        await self.channel_layer.group_send(
            conversation_group(conversation_id),
            {
                "type": event,
                "message": {
                    "conversation_id": conversation_id,
                    "user": {"id": str(self.user.id), "name": self.user.display_name},
                },
                "sender_channel": self.channel_name,
            },
        )

    # ------------------------------------------------------------------ #
    # Channel layer events
    # ------------------------------------------------------------------ #

    async def new_message(self, event):
        await self.send_event("new-message", event["message"])

    async def message_notification(self, event):
        await self.send_event("message-notification", event["message"])

    async def messages_read(self, event):
        await self.send_event("messages-read", event["message"])

    async def user_typing(self, event):
        if event.get("sender_channel") != self.channel_name:
            await self.send_event("user-typing", event["message"])

    async def user_stop_typing(self, event):
        if event.get("sender_channel") != self.channel_name:
            await self.send_event("user-stop-typing", event["message"])

    async def new_conversation(self, event):
        await self.send_event("new-conversation", event["message"])

    async def order_update(self, event):
        await self.send_event("order-update", event["message"])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def send_event(self, event_type, data):
        await self.send(text_data=json.dumps({"type": event_type, "data": data}))

    async def send_error(self, message, code="error"):
        await self.send(text_data=json.dumps({"type": "error", "code": code, "message": message}))

    @staticmethod
    def parse_conversation_id(payload):
        try:
            return str(uuid.UUID(str(payload.get("conversation_id"))))
        except (AttributeError, ValueError):
            return None

    @database_sync_to_async
    def check_participant(self, conversation_id):
        return container.messaging_service().is_participant(conversation_id, self.user)

    @database_sync_to_async
    def run_service(self, method, *args):
        return getattr(container.messaging_service(), method)(*args)
