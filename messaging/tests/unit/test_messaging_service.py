from unittest.mock import MagicMock, patch

import pytest
from django.test import TestCase

from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import ConversationFactory, MessageFactory, ProductFactory, UserFactory
from messaging.domain.models import Conversation, ConversationParticipant, Message
from messaging.domain.services import MessagingService

pytestmark = pytest.mark.unit


@patch("messaging.domain.services.messaging_service.async_to_sync")
class MessagingServiceTests(TestCase):
    def setUp(self):
        self.service = MessagingService()
        self.service.channel_layer = MagicMock()
        self.buyer = UserFactory()
        self.product = ProductFactory()
        self.seller = self.product.seller

    def unread(self, conversation, user):
        return ConversationParticipant.objects.get(conversation=conversation, user=user).unread_count

    def sent_groups(self, mock_executor):
        return [call.args[0] for call in mock_executor.call_args_list]

    def test_create_conversation_sets_up_both_participants(self, mock_async_to_sync):
        result = self.service.create_conversation(self.buyer, self.product.id, "Is this still available?")

        self.assertTrue(result.ok)
        self.assertTrue(result.value["created"])
        conversation = result.value["conversation"]
        self.assertEqual(conversation.buyer, self.buyer)
        self.assertEqual(self.unread(conversation, self.buyer), 0)
        self.assertEqual(self.unread(conversation, self.seller), 1)
        self.assertEqual(result.value["message"].text, "Is this still available?")

    def test_create_conversation_notifies_seller(self, mock_async_to_sync):
        mock_executor = MagicMock()
        mock_async_to_sync.return_value = mock_executor

        self.service.create_conversation(self.buyer, self.product.id, "Hi")

        args, _ = mock_executor.call_args
        self.assertEqual(args[0], f"user_{self.seller.id}")
        self.assertEqual(args[1]["type"], "new_conversation")
        self.assertEqual(args[1]["message"]["buyer"]["id"], str(self.buyer.id))

    def test_second_message_reuses_conversation(self, mock_async_to_sync):
        first = self.service.create_conversation(self.buyer, self.product.id, "Hi")
        second = self.service.create_conversation(self.buyer, self.product.id, "Still there?")

        self.assertTrue(second.ok)
        self.assertFalse(second.value["created"])
        self.assertEqual(first.value["conversation"].id, second.value["conversation"].id)
        self.assertEqual(Conversation.objects.filter(product=self.product, buyer=self.buyer).count(), 1)
        self.assertEqual(self.unread(first.value["conversation"], self.seller), 2)

    def test_create_conversation_rejects_own_product(self, mock_async_to_sync):
        result = self.service.create_conversation(self.seller, self.product.id, "Hello me")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.SELF_MESSAGE)
        self.assertFalse(Conversation.objects.exists())

    def test_create_conversation_requires_text(self, mock_async_to_sync):
        result = self.service.create_conversation(self.buyer, self.product.id, "   ")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.EMPTY_MESSAGE)

    def test_create_conversation_unknown_product(self, mock_async_to_sync):
        result = self.service.create_conversation(self.buyer, "00000000-0000-0000-0000-000000000000", "Hi")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.PRODUCT_NOT_FOUND)

    def test_send_message_increments_other_side_only(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.send_message(conversation.id, self.seller, "Yes it is")

        self.assertTrue(result.ok)
        self.assertEqual(self.unread(conversation, self.buyer), 1)
        self.assertEqual(self.unread(conversation, self.seller), 0)
        conversation.refresh_from_db()
        self.assertEqual(conversation.last_message_at, result.value["message"].created_at)

    def test_send_message_fans_out(self, mock_async_to_sync):
        mock_executor = MagicMock()
        mock_async_to_sync.return_value = mock_executor
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        self.service.send_message(conversation.id, self.buyer, "Ping")

        self.assertEqual(
            self.sent_groups(mock_executor), [f"conversation_{conversation.id}", f"user_{self.seller.id}"]
        )
        events = [call.args[1]["type"] for call in mock_executor.call_args_list]
        self.assertEqual(events, ["new_message", "message_notification"])

    def test_send_message_by_outsider_is_rejected(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.send_message(conversation.id, UserFactory(), "Let me in")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.NOT_PARTICIPANT)
        self.assertFalse(Message.objects.exists())

    def test_send_message_unknown_conversation(self, mock_async_to_sync):
        result = self.service.send_message("00000000-0000-0000-0000-000000000000", self.buyer, "Hi")

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.CONVERSATION_NOT_FOUND)

    def test_broadcast_failure_does_not_fail_send(self, mock_async_to_sync):
        mock_async_to_sync.return_value = MagicMock(side_effect=RuntimeError("layer down"))
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.send_message(conversation.id, self.buyer, "Still saved")

        self.assertTrue(result.ok)
        self.assertEqual(Message.objects.filter(conversation=conversation).count(), 1)

    def test_mark_as_read(self, mock_async_to_sync):
        conversation = self.service.create_conversation(self.buyer, self.product.id, "One").value["conversation"]
        self.service.send_message(conversation.id, self.buyer, "Two")
        self.service.send_message(conversation.id, self.seller, "Reply")

        result = self.service.mark_as_read(conversation.id, self.seller)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["marked_read"], 2)
        self.assertEqual(self.unread(conversation, self.seller), 0)
        self.assertFalse(Message.objects.filter(conversation=conversation, sender=self.buyer, is_read=False).exists())
        # The seller's own reply stays unread for the buyer
        self.assertFalse(Message.objects.get(sender=self.seller).is_read)
        self.assertEqual(self.unread(conversation, self.buyer), 1)

    def test_mark_as_read_without_changes_does_not_broadcast(self, mock_async_to_sync):
        mock_executor = MagicMock()
        mock_async_to_sync.return_value = mock_executor
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.mark_as_read(conversation.id, self.buyer)

        self.assertEqual(result.value["marked_read"], 0)
        mock_executor.assert_not_called()

    def test_mark_as_read_requires_participant(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.mark_as_read(conversation.id, UserFactory())

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.NOT_PARTICIPANT)

    def test_get_messages_oldest_first_with_paging(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)
        for text in ("first", "second", "third"):
            self.service.send_message(conversation.id, self.buyer, text)

        result = self.service.get_messages(conversation.id, self.seller)
        self.assertEqual([m.text for m in result.value], ["first", "second", "third"])

        page = self.service.get_messages(conversation.id, self.seller, limit=1, offset=1)
        self.assertEqual([m.text for m in page.value], ["second"])

    def test_get_messages_rejects_bad_limit(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)

        result = self.service.get_messages(conversation.id, self.buyer, limit=0)

        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorCodes.INVALID_INPUT)

    def test_get_conversation_marks_read(self, mock_async_to_sync):
        conversation = self.service.create_conversation(self.buyer, self.product.id, "Hi").value["conversation"]

        result = self.service.get_conversation(conversation.id, self.seller)

        self.assertTrue(result.ok)
        self.assertEqual(len(result.value["participants"]), 2)
        self.assertEqual(len(result.value["messages"]), 1)
        self.assertEqual(self.unread(conversation, self.seller), 0)

    def test_user_conversations_most_recent_first(self, mock_async_to_sync):
        older = self.service.create_conversation(self.buyer, self.product.id, "old").value["conversation"]
        newer = self.service.create_conversation(self.buyer, ProductFactory().id, "new").value["conversation"]

        result = self.service.get_user_conversations(self.buyer)

        self.assertEqual([row.conversation_id for row in result.value], [newer.id, older.id])
        self.assertEqual(result.value[0].last_message_text, "new")

    def test_unread_count_sums_conversations(self, mock_async_to_sync):
        other_product = ProductFactory(seller=self.seller)
        self.service.create_conversation(self.buyer, self.product.id, "a")
        self.service.create_conversation(self.buyer, self.product.id, "b")
        self.service.create_conversation(UserFactory(), other_product.id, "c")

        result = self.service.get_unread_count(self.seller)

        self.assertTrue(result.ok)
        self.assertEqual(result.value, 3)

    def test_delete_conversation(self, mock_async_to_sync):
        conversation = ConversationFactory(product=self.product, buyer=self.buyer)
        MessageFactory(conversation=conversation)

        denied = self.service.delete_conversation(conversation.id, UserFactory())
        self.assertEqual(denied.error, ErrorCodes.NOT_PARTICIPANT)

        result = self.service.delete_conversation(conversation.id, self.buyer)
        self.assertTrue(result.ok)
        self.assertFalse(Conversation.objects.exists())
        self.assertFalse(Message.objects.exists())
