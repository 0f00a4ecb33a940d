from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.reviews.api.serializers import (
    CreateReviewSerializer,
    RatingStatsSerializer,
    ReviewEligibilitySerializer,
    ReviewSerializer,
    UpdateReviewSerializer,
)
from marketplace.reviews.domain.services import ReviewService


class ReviewViewSet(viewsets.ViewSet):
    def get_service(self) -> ReviewService:
        return container.review_service()

    def get_permissions(self):
        if self.action in ["seller_reviews", "product_reviews"]:
            return [AllowAny()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="reviews_create",
        summary="Review a seller",
        description="""
        **What it receives:**
        - `seller_id` (UUID), `rating` (whole number 1-5), optional `comment`
        - Optional `product_id`: must belong to the seller and appear in one of
          the caller's completed orders

        **What it returns:**
        - The review; the seller's average rating is recomputed in the same transaction
        """,
        request=CreateReviewSerializer,
        responses={
            201: OpenApiResponse(response=ReviewSerializer, description="Review created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid rating or seller mismatch"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Product not purchased"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Seller or product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def create(self, request):
        serializer = CreateReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().create_review(
            request.user,
            data["seller_id"],
            data["rating"],
            comment=data.get("comment", ""),
            product_id=data.get("product_id"),
        )
        if not result.ok:
            return error_response(result)
        return success_response(
            ReviewSerializer(result.value).data, "Review created successfully", status_code=status.HTTP_201_CREATED
        )

    @extend_schema(
        operation_id="reviews_update",
        summary="Edit a review",
        request=UpdateReviewSerializer,
        responses={
            200: OpenApiResponse(response=ReviewSerializer, description="Review updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the reviewer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Review not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def update(self, request, pk=None):
        serializer = UpdateReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().update_review(
            request.user, pk, rating=data.get("rating"), comment=data.get("comment")
        )
        if not result.ok:
            return error_response(result)
        return success_response(ReviewSerializer(result.value).data, "Review updated successfully")

    @extend_schema(
        operation_id="reviews_delete",
        summary="Delete a review",
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Review deleted"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the reviewer"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Review not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_review(request.user, pk)
        if not result.ok:
            return error_response(result)
        return success_response(message="Review deleted successfully")

    @extend_schema(
        operation_id="reviews_for_seller",
        summary="Reviews received by a seller",
        description="""
        **What it returns:**
        - Paginated reviews plus `rating_stats` (average, total and a 1-5 distribution)
        """,
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Reviews retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Seller not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def seller_reviews(self, request, seller_id=None):
        result = self.get_service().get_seller_reviews(
            seller_id, request.query_params.get("page"), request.query_params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(
            result.value,
            ReviewSerializer,
            "Reviews retrieved successfully",
            rating_stats=RatingStatsSerializer(result.value["rating_stats"]).data,
        )

    @extend_schema(
        operation_id="reviews_for_product",
        summary="Reviews of a product",
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Reviews retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def product_reviews(self, request, product_id=None):
        result = self.get_service().get_product_reviews(
            product_id, request.query_params.get("page"), request.query_params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, ReviewSerializer, "Reviews retrieved successfully")

    @extend_schema(
        operation_id="reviews_check_eligibility",
        summary="Can the current user review this product",
        responses={
            200: OpenApiResponse(response=ReviewEligibilitySerializer, description="Eligibility flags"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Reviews"],
    )
    def check_eligibility(self, request, product_id=None):
        result = self.get_service().check_eligibility(request.user, product_id)
        if not result.ok:
            return error_response(result)
        return success_response(ReviewEligibilitySerializer(result.value).data)

    @extend_schema(
        operation_id="reviews_user_product",
        summary="A user's review of a product",
        description="""
        **What it returns:**
        - The review, or `data: null` when the user has not reviewed the product.
          Only the user themself or an admin may ask.
        """,
        responses={
            200: OpenApiResponse(response=ReviewSerializer, description="Review or null"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not allowed"),
        },
        tags=["Marketplace - Reviews"],
    )
    def user_review(self, request, user_id=None, product_id=None):
        result = self.get_service().get_user_review_for_product(request.user, user_id, product_id)
        if not result.ok:
            return error_response(result)
        review = result.value
        if review is None:
            return Response({"success": True, "message": "No review found", "data": None})
        return success_response(ReviewSerializer(review).data, "Review retrieved successfully")
