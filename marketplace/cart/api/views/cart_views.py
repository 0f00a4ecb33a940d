from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, SuccessResponseSerializer
from marketplace.cart.api.serializers import (
    AddCartItemSerializer,
    CartItemSerializer,
    CartSerializer,
    CartTotalsSerializer,
    CartValidationSerializer,
    UpdateCartItemSerializer,
)
from marketplace.cart.domain.services import CartService


class CartViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CartService:
        return container.cart_service()

    @extend_schema(
        operation_id="cart_get",
        summary="Get user's shopping cart",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - Active cart lines with product and seller summary
        - Totals (subtotal, service fee, total) and line count

        Lines whose product is no longer active are removed before the cart is returned.
        """,
        responses={
            200: OpenApiResponse(response=CartSerializer, description="Cart retrieved successfully"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    def list(self, request):
        result = self.get_service().get_cart(request.user)
        if not result.ok:
            return error_response(result)
        return success_response(CartSerializer(result.value).data, "Cart retrieved successfully")

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to add
        - `quantity` (integer, optional): Quantity to add (default: 1)

        **What it returns:**
        - The cart line (quantities are summed when the product is already in the cart)
        - Updated totals
        """,
        request=AddCartItemSerializer,
        responses={
            201: OpenApiResponse(response=SuccessResponseSerializer, description="Item added to cart"),
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Quantity added to existing line"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid data, own product or product unavailable"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Cart"],
    )
    def add_item(self, request):
        serializer = AddCartItemSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().add_item(
            request.user, serializer.validated_data["product_id"], serializer.validated_data["quantity"]
        )
        if not result.ok:
            return error_response(result)

        value = result.value
        return success_response(
            {
                "item": CartItemSerializer(value["item"]).data,
                "totals": CartTotalsSerializer(value["totals"]).data if value["totals"] else None,
            },
            "Item added to cart",
            status_code=status.HTTP_201_CREATED if value["created"] else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="cart_update_item",
        summary="Update item quantity in cart",
        description="""
        **What it receives:**
        - `id` (path): Cart line ID
        - `quantity` (integer): New quantity, at least 1

        **What it returns:**
        - The updated cart line and totals
        """,
        request=UpdateCartItemSerializer,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Item updated successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid quantity"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Line belongs to another user"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart"),
        },
        tags=["Marketplace - Cart"],
    )
    def update_item(self, request, pk=None):
        serializer = UpdateCartItemSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_item_quantity(request.user, pk, serializer.validated_data["quantity"])
        if not result.ok:
            return error_response(result)

        value = result.value
        return success_response(
            {
                "item": CartItemSerializer(value["item"]).data,
                "totals": CartTotalsSerializer(value["totals"]).data if value["totals"] else None,
            },
            "Cart item updated",
        )

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        description="""
        **What it receives:**
        - `id` (path): Cart line ID

        **What it returns:**
        - Number of lines removed (0 if it was already gone)
        """,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Item removed"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Line belongs to another user"),
        },
        tags=["Marketplace - Cart"],
    )
    def remove_item(self, request, pk=None):
        result = self.get_service().remove_item(request.user, pk)
        if not result.ok:
            return error_response(result)
        return success_response({"removed": result.value}, "Item removed from cart")

    @extend_schema(
        operation_id="cart_clear",
        summary="Clear all items from cart",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - Number of lines removed; clearing an empty cart succeeds with 0
        """,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Cart cleared successfully"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    def clear(self, request):
        result = self.get_service().clear_cart(request.user)
        if not result.ok:
            return error_response(result)
        return success_response({"removed": result.value}, "Cart cleared successfully")

    @extend_schema(
        operation_id="cart_validate",
        summary="Check the cart is ready for checkout",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - `valid`, a message, the unavailable lines and the line count

        Read-only: unavailable lines are reported, not removed.
        """,
        responses={200: OpenApiResponse(response=CartValidationSerializer, description="Validation result")},
        tags=["Marketplace - Cart"],
    )
    def validate(self, request):
        result = self.get_service().validate_cart(request.user)
        if not result.ok:
            return error_response(result)
        return success_response(CartValidationSerializer(result.value).data, result.value["message"])

    @extend_schema(
        operation_id="cart_count",
        summary="Number of lines in the cart",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Line count")},
        tags=["Marketplace - Cart"],
    )
    def count(self, request):
        return success_response({"count": self.get_service().get_item_count(request.user)})

    @extend_schema(
        operation_id="cart_check_product",
        summary="Whether a product is in the cart",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Membership flag")},
        tags=["Marketplace - Cart"],
    )
    def check(self, request, product_id=None):
        return success_response({"in_cart": self.get_service().is_in_cart(request.user, product_id)})
