from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, SuccessResponseSerializer
from messaging.api.serializers import (
    ConversationDetailSerializer,
    ConversationSummarySerializer,
    MessageSerializer,
    SendMessageSerializer,
    StartConversationSerializer,
)
from messaging.domain.services import MessagingService


class ConversationViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> MessagingService:
        return container.messaging_service()

    @extend_schema(
        operation_id="messages_conversations",
        summary="Current user's conversations",
        description="""
        **What it returns:**
        - One row per conversation, most recent activity first, with the
          product, the other participant, the last message and the caller's
          unread count
        """,
        responses={200: OpenApiResponse(response=ConversationSummarySerializer(many=True), description="Conversations")},
        tags=["Messaging"],
    )
    def list(self, request):
        result = self.get_service().get_user_conversations(request.user)
        if not result.ok:
            return error_response(result)
        rows = result.value
        return success_response(
            ConversationSummarySerializer(rows, many=True).data, "Conversations retrieved successfully", count=len(rows)
        )

    @extend_schema(
        operation_id="messages_start",
        summary="Message a seller about a product",
        description="""
        **What it receives:**
        - `product_id` (UUID) and `text`

        **What it returns:**
        - The conversation id, the stored message and `created`. A buyer has at
          most one conversation per product; writing again continues it.
        """,
        request=StartConversationSerializer,
        responses={
            201: OpenApiResponse(response=SuccessResponseSerializer, description="Conversation started"),
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Existing conversation continued"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Own product or empty message"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Messaging"],
    )
    def create(self, request):
        serializer = StartConversationSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().create_conversation(
            request.user, serializer.validated_data["product_id"], serializer.validated_data["text"]
        )
        if not result.ok:
            return error_response(result)

        value = result.value
        return success_response(
            {
                "conversation_id": str(value["conversation"].id),
                "message": MessageSerializer(value["message"]).data,
                "created": value["created"],
            },
            "Conversation started" if value["created"] else "Message sent",
            status_code=status.HTTP_201_CREATED if value["created"] else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="messages_conversation_detail",
        summary="Open a conversation",
        description="""
        **What it returns:**
        - The conversation, its participants and the first 50 messages
          (oldest first). Opening it marks the other side's messages as read.
        """,
        responses={
            200: OpenApiResponse(response=ConversationDetailSerializer, description="Conversation"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a participant"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Conversation not found"),
        },
        tags=["Messaging"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_conversation(pk, request.user)
        if not result.ok:
            return error_response(result)
        return success_response(ConversationDetailSerializer(result.value).data, "Conversation retrieved successfully")

    @extend_schema(
        operation_id="messages_send",
        summary="Send a message",
        request=SendMessageSerializer,
        responses={
            201: OpenApiResponse(response=MessageSerializer, description="Message sent"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a participant"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Conversation not found"),
        },
        tags=["Messaging"],
    )
    def send(self, request, pk=None):
        serializer = SendMessageSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().send_message(pk, request.user, serializer.validated_data["text"])
        if not result.ok:
            return error_response(result)
        return success_response(
            MessageSerializer(result.value["message"]).data, "Message sent", status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="messages_history",
        summary="Page through a conversation",
        parameters=[
            OpenApiParameter("limit", int, description="Default 50, at most 200"),
            OpenApiParameter("offset", int, description="Default 0"),
        ],
        responses={
            200: OpenApiResponse(response=MessageSerializer(many=True), description="Messages, oldest first"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a participant"),
        },
        tags=["Messaging"],
    )
    def messages(self, request, pk=None):
        params = request.query_params
        result = self.get_service().get_messages(
            pk, request.user, limit=params.get("limit", 50), offset=params.get("offset", 0)
        )
        if not result.ok:
            return error_response(result)
        messages = result.value
        return success_response(MessageSerializer(messages, many=True).data, count=len(messages))

    @extend_schema(
        operation_id="messages_mark_read",
        summary="Mark a conversation as read",
        request=None,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Messages marked read"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a participant"),
        },
        tags=["Messaging"],
    )
    def mark_read(self, request, pk=None):
        result = self.get_service().mark_as_read(pk, request.user)
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Messages marked as read")

    @extend_schema(
        operation_id="messages_delete",
        summary="Delete a conversation",
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Conversation deleted"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a participant"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Conversation not found"),
        },
        tags=["Messaging"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_conversation(pk, request.user)
        if not result.ok:
            return error_response(result)
        return success_response(message="Conversation deleted successfully")

    @extend_schema(
        operation_id="messages_unread_count",
        summary="Unread messages across all conversations",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Unread count")},
        tags=["Messaging"],
    )
    def unread_count(self, request):
        result = self.get_service().get_unread_count(request.user)
        if not result.ok:
            return error_response(result)
        return success_response({"unread_count": result.value})
