from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.ordering.api.serializers import (
    CheckoutSerializer,
    CreateOrderSerializer,
    MonthlySalesSerializer,
    OrderSerializer,
    OrderStatusSerializer,
    PaymentStatusSerializer,
)
from marketplace.ordering.domain.services import OrderService
from marketplace.permissions import IsAdminUser


ADMIN_ACTIONS = ("all_orders", "stats", "monthly_stats", "update_status")


class OrderViewSet(viewsets.ViewSet):
    """
    Orders are addressed by UUID or by order number (``ORD-12345``).
    """

    def get_service(self) -> OrderService:
        return container.order_service()

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminUser()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="orders_create",
        summary="Place an order from the cart",
        description="""
        **What it receives:**
        - `payment_method`: credit, paypal or other
        - Optional delivery address fields

        **What it returns:**
        - The new order with its items and totals

        All-or-nothing: every cart product is marked sold and the cart is emptied,
        or nothing changes.
        """,
        request=CreateOrderSerializer,
        responses={
            201: OpenApiResponse(response=OrderSerializer, description="Order created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Empty cart, invalid payment method or product unavailable"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Orders"],
    )
    def create(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().create_order(
            request.user, serializer.validated_data["payment_method"], serializer.delivery()
        )
        if not result.ok:
            return error_response(result)
        return success_response(
            OrderSerializer(result.value).data, "Order placed successfully", status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="orders_list",
        summary="Current user's orders",
        parameters=[OpenApiParameter("status", str, enum=["pending", "completed", "cancelled"])],
        responses={200: OpenApiResponse(response=OrderSerializer(many=True), description="Orders retrieved")},
        tags=["Marketplace - Orders"],
    )
    def list(self, request):
        result = self.get_service().get_user_orders(request.user, request.query_params.get("status"))
        if not result.ok:
            return error_response(result)
        orders = result.value
        return success_response(OrderSerializer(orders, many=True).data, "Orders retrieved successfully", count=len(orders))

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Order detail",
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Order retrieved"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the buyer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_order(pk, request.user)
        if not result.ok:
            return error_response(result)
        return success_response(OrderSerializer(result.value).data, "Order retrieved successfully")

    @extend_schema(
        operation_id="orders_cancel",
        summary="Cancel an order",
        description="""
        **What it receives:**
        - `id` (path): Order UUID or number

        **What it returns:**
        - The cancelled order; its products are listed as active again
        """,
        request=None,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Order cancelled"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the buyer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Order already completed or cancelled"),
        },
        tags=["Marketplace - Orders"],
    )
    def cancel(self, request, pk=None):
        result = self.get_service().cancel_order(pk, request.user)
        if not result.ok:
            return error_response(result)
        return success_response(OrderSerializer(result.value).data, "Order cancelled successfully")

    @extend_schema(
        operation_id="orders_update_payment",
        summary="Record payment status",
        request=PaymentStatusSerializer,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Payment status updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid payment status"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Transition not allowed"),
        },
        tags=["Marketplace - Orders"],
    )
    def update_payment(self, request, pk=None):
        serializer = PaymentStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_payment_status(pk, serializer.validated_data["payment_status"], request.user)
        if not result.ok:
            return error_response(result)
        return success_response(OrderSerializer(result.value).data, "Payment status updated")

    @extend_schema(
        operation_id="orders_checkout",
        summary="Pay for an order",
        description="""
        **What it receives:**
        - `payment_type`: card or paypal
        - `payment_token`: token from the payment form

        **What it returns:**
        - The paid, completed order and the transaction id
        """,
        request=CheckoutSerializer,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Payment succeeded"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Payment declined"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the buyer"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already paid or cancelled"),
        },
        tags=["Marketplace - Orders"],
    )
    def checkout(self, request, pk=None):
        serializer = CheckoutSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().process_checkout(
            pk, request.user, serializer.validated_data["payment_type"], serializer.validated_data["payment_token"]
        )
        if not result.ok:
            return error_response(result)
        return success_response(
            {"order": OrderSerializer(result.value["order"]).data, "transaction_id": result.value["transaction_id"]},
            "Payment processed successfully",
        )

    # ---- admin -------------------------------------------------------------

    @extend_schema(
        operation_id="orders_update_status",
        summary="Set order status (admin)",
        request=OrderStatusSerializer,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Status updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid status"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Order already closed"),
        },
        tags=["Marketplace - Orders (Admin)"],
    )
    def update_status(self, request, pk=None):
        serializer = OrderStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_order_status(pk, serializer.validated_data["status"], request.user)
        if not result.ok:
            return error_response(result)
        return success_response(OrderSerializer(result.value).data, "Order status updated")

    @extend_schema(
        operation_id="orders_all",
        summary="All orders (admin)",
        parameters=[
            OpenApiParameter("status", str, enum=["pending", "completed", "cancelled"]),
            OpenApiParameter("page", int),
            OpenApiParameter("page_size", int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer, description="Orders retrieved")},
        tags=["Marketplace - Orders (Admin)"],
    )
    def all_orders(self, request):
        params = request.query_params
        result = self.get_service().get_all_orders(params.get("status"), params.get("page"), params.get("page_size"))
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, OrderSerializer, "Orders retrieved successfully")

    @extend_schema(
        operation_id="orders_stats",
        summary="Order totals by status (admin)",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Statistics")},
        tags=["Marketplace - Orders (Admin)"],
    )
    def stats(self, request):
        result = self.get_service().get_stats()
        if not result.ok:
            return error_response(result)
        stats = result.value
        return success_response({**stats, "total_sales": str(stats["total_sales"])}, "Order statistics retrieved")

    @extend_schema(
        operation_id="orders_monthly_stats",
        summary="Completed sales per month (admin)",
        parameters=[OpenApiParameter("year", int, description="Defaults to the current year")],
        responses={200: OpenApiResponse(response=MonthlySalesSerializer(many=True), description="Twelve months")},
        tags=["Marketplace - Orders (Admin)"],
    )
    def monthly_stats(self, request):
        year = request.query_params.get("year")
        if year is not None:
            try:
                year = int(year)
            except ValueError:
                return validation_error_response({"year": ["A valid integer is required."]})

        result = self.get_service().get_monthly_sales(year)
        if not result.ok:
            return error_response(result)
        return success_response(MonthlySalesSerializer(result.value, many=True).data, "Monthly sales retrieved")
