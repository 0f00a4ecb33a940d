from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.catalog.api.serializers import (
    ProductCreateSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductReviewDecisionSerializer,
    ProductStatusSerializer,
    ProductUpdateSerializer,
)
from marketplace.catalog.domain.services import CatalogService
from marketplace.permissions import IsAdminUser


class ProductViewSet(viewsets.ViewSet):
    """
    Listings: public browsing, seller edits and admin moderation.
    """

    def get_service(self) -> CatalogService:
        return container.catalog_service()

    def get_permissions(self):
        if self.action in ["list", "retrieve", "featured", "recent", "categories"]:
            return [AllowAny()]
        if self.action in ["pending", "review", "update_status"]:
            return [IsAuthenticated(), IsAdminUser()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="products_list",
        summary="Browse active listings",
        description="""
        **What it receives:**
        - Optional filters: `seller`, `category`, `search`, `min_price`, `max_price`
        - `page`, `page_size` (defaults to the platform's items per page)

        **What it returns:**
        - Paginated active products
        """,
        parameters=[
            OpenApiParameter("seller", str, description="Seller ID"),
            OpenApiParameter("category", str),
            OpenApiParameter("search", str, description="Matches name or description"),
            OpenApiParameter("min_price", float),
            OpenApiParameter("max_price", float),
            OpenApiParameter("page", int),
            OpenApiParameter("page_size", int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer, description="Products retrieved")},
        tags=["Marketplace - Products"],
    )
    def list(self, request):
        params = request.query_params
        filters = {key: params.get(key) for key in ("seller", "category", "search", "min_price", "max_price")}
        result = self.get_service().list_products(filters, params.get("page"), params.get("page_size"))
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, ProductListSerializer, "Products retrieved successfully")

    @extend_schema(
        operation_id="products_create",
        summary="Create a listing",
        description="""
        **What it receives:**
        - `name`, `price` and optional `description`, `category`, `condition`, `location`

        **What it returns:**
        - The new product. It starts `pending` when the platform requires admin
          approval, otherwise `active`.
        """,
        request=ProductCreateSerializer,
        responses={
            201: OpenApiResponse(response=ProductDetailSerializer, description="Product created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid product data"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Account cannot sell"),
        },
        tags=["Marketplace - Products"],
    )
    def create(self, request):
        serializer = ProductCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().create_product(request.user, serializer.validated_data)
        if not result.ok:
            return error_response(result)

        product = result.value
        message = "Product submitted for review" if product.status == product.STATUS_PENDING else "Product created"
        return success_response(ProductDetailSerializer(product).data, message, status_code=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="products_retrieve",
        summary="Product detail",
        description="""
        **What it receives:**
        - `id` (path): Product UUID

        **What it returns:**
        - Product detail with `related_products` (same category) and
          `seller_stats`. Either extra comes back empty if it cannot be loaded.
        - Pending, rejected and suspended listings are visible only to their
          seller and admins. Each view by someone other than the seller bumps
          the view counter.
        """,
        responses={
            200: OpenApiResponse(response=ProductDetailSerializer, description="Product retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Products"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_product_detail(pk, viewer=request.user)
        if not result.ok:
            return error_response(result)

        detail = result.value
        data = ProductDetailSerializer(detail["product"]).data
        data["related_products"] = ProductListSerializer(detail["related_products"], many=True).data
        data["seller_stats"] = detail["seller_stats"]
        return success_response(data, "Product retrieved successfully")

    @extend_schema(
        operation_id="products_pending",
        summary="Listings awaiting approval (admin)",
        responses={
            200: OpenApiResponse(response=PaginatedResponseSerializer, description="Pending products"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Admin access required"),
        },
        tags=["Marketplace - Products"],
    )
    def pending(self, request):
        result = self.get_service().list_pending_products(
            request.query_params.get("page"), request.query_params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, ProductListSerializer, "Pending products retrieved")

    @extend_schema(
        operation_id="products_review",
        summary="Approve or reject a pending listing (admin)",
        request=ProductReviewDecisionSerializer,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Decision recorded"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Product is not pending"),
        },
        tags=["Marketplace - Products"],
    )
    def review(self, request, pk=None):
        serializer = ProductReviewDecisionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().review_product(pk, serializer.validated_data["status"])
        if not result.ok:
            return error_response(result)
        return success_response(ProductDetailSerializer(result.value).data, f"Product {result.value.status}")

    @extend_schema(
        operation_id="products_update",
        summary="Edit a listing (seller or admin)",
        description="""
        **What it receives:**
        - Any of `name`, `description`, `category`, `price`, `condition`, `location`
        - `status`, admins only; sold status is managed by orders
        """,
        request=ProductUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ProductDetailSerializer, description="Product updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid product data"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your listing"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Products"],
    )
    def update(self, request, pk=None):
        serializer = ProductUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_product(request.user, pk, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return success_response(ProductDetailSerializer(result.value).data, "Product updated successfully")

    @extend_schema(
        operation_id="products_delete",
        summary="Delete a listing (seller or admin)",
        description="""
        **What it returns:**
        - Counts of removed cart lines, listing reports and conversations.
          Reviews of the product are kept without the product link.
        - 409 when the product appears on an order
        """,
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Product deleted"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your listing"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Product has orders"),
        },
        tags=["Marketplace - Products"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_product(request.user, pk)
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Product deleted successfully")

    @extend_schema(
        operation_id="products_update_status",
        summary="Set a listing's status (admin)",
        request=ProductStatusSerializer,
        responses={
            200: OpenApiResponse(response=ProductDetailSerializer, description="Status updated"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Product is sold"),
        },
        tags=["Marketplace - Products"],
    )
    def update_status(self, request, pk=None):
        serializer = ProductStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_product_status(pk, serializer.validated_data["status"])
        if not result.ok:
            return error_response(result)
        return success_response(ProductDetailSerializer(result.value).data, f"Product {result.value.status}")

    @extend_schema(
        operation_id="products_featured",
        summary="Featured listings",
        description="Active listings ranked by views and interest.",
        parameters=[OpenApiParameter("limit", int, description="Default 4, at most 50")],
        responses={
            200: OpenApiResponse(response=ProductListSerializer(many=True), description="Featured products"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid limit"),
        },
        tags=["Marketplace - Products"],
    )
    def featured(self, request):
        result = self.get_service().featured_products(request.query_params.get("limit"))
        if not result.ok:
            return error_response(result)
        return success_response(ProductListSerializer(result.value, many=True).data, "Featured products retrieved")

    @extend_schema(
        operation_id="products_recent",
        summary="Newest listings",
        parameters=[OpenApiParameter("limit", int, description="Default 8, at most 50")],
        responses={
            200: OpenApiResponse(response=ProductListSerializer(many=True), description="Recent products"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid limit"),
        },
        tags=["Marketplace - Products"],
    )
    def recent(self, request):
        result = self.get_service().recent_products(request.query_params.get("limit"))
        if not result.ok:
            return error_response(result)
        return success_response(ProductListSerializer(result.value, many=True).data, "Recent products retrieved")

    @extend_schema(
        operation_id="products_categories",
        summary="Categories in use",
        description="Categories of active listings with product counts, plus the five most popular.",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Categories")},
        tags=["Marketplace - Products"],
    )
    def categories(self, request):
        result = self.get_service().categories()
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Categories retrieved")
