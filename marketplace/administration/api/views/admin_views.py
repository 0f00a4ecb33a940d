from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.administration.api.serializers import AdminUserSerializer, UserRoleSerializer, UserStatusSerializer
from marketplace.administration.domain.services import AdminService
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.permissions import IsAdminUser


class AdminViewSet(viewsets.ViewSet):
    """
    Admin-only user moderation, dashboard and reports.
    """

    permission_classes = [IsAuthenticated, IsAdminUser]

    def get_service(self) -> AdminService:
        return container.admin_service()

    @extend_schema(
        operation_id="admin_users",
        summary="List accounts",
        parameters=[
            OpenApiParameter("role", str),
            OpenApiParameter("status", str, description="Account status"),
            OpenApiParameter("search", str, description="Matches email or name"),
            OpenApiParameter("page", int),
            OpenApiParameter("page_size", int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer, description="Users retrieved")},
        tags=["Admin"],
    )
    def users(self, request):
        params = request.query_params
        filters = {key: params.get(key) for key in ("role", "status", "search")}
        result = self.get_service().list_users(filters, params.get("page"), params.get("page_size"))
        if not result.ok:
            return error_response(result)
        return paginated_response(result.value, AdminUserSerializer, "Users retrieved")

    @extend_schema(
        operation_id="admin_user_status",
        summary="Activate, deactivate or suspend an account",
        request=UserStatusSerializer,
        responses={
            200: OpenApiResponse(response=AdminUserSerializer, description="Status updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Target is another admin"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="User not found"),
        },
        tags=["Admin"],
    )
    def user_status(self, request, user_id=None):
        serializer = UserStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_user_status(request.user, user_id, serializer.validated_data["status"])
        if not result.ok:
            return error_response(result)
        return success_response(
            AdminUserSerializer(result.value).data, f"User status updated to {result.value.account_status}"
        )

    @extend_schema(
        operation_id="admin_user_role",
        summary="Change an account's role",
        request=UserRoleSerializer,
        responses={
            200: OpenApiResponse(response=AdminUserSerializer, description="Role updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Own role"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="User not found"),
        },
        tags=["Admin"],
    )
    def user_role(self, request, user_id=None):
        serializer = UserRoleSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_user_role(request.user, user_id, serializer.validated_data["role"])
        if not result.ok:
            return error_response(result)
        return success_response(AdminUserSerializer(result.value).data, f"User role updated to {result.value.role}")

    @extend_schema(
        operation_id="admin_dashboard",
        summary="Dashboard overview",
        description="""
        **What it returns:**
        - User, product, order and report statistics
        - Pending report count
        - The five most recent listings and orders
        """,
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Dashboard")},
        tags=["Admin"],
    )
    def dashboard(self, request):
        result = self.get_service().dashboard()
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Dashboard retrieved")

    @extend_schema(
        operation_id="admin_sales_report",
        summary="Sales report",
        description="""
        **What it receives:**
        - `start_date`, `end_date` (YYYY-MM-DD, both inclusive, required)

        **What it returns:**
        - Completed orders per day, totals, top five categories and sellers
        """,
        parameters=[
            OpenApiParameter("start_date", str, required=True),
            OpenApiParameter("end_date", str, required=True),
        ],
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Report"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing or invalid dates"),
        },
        tags=["Admin"],
    )
    def sales_report(self, request):
        params = request.query_params
        result = self.get_service().sales_report(params.get("start_date"), params.get("end_date"))
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Sales report generated")

    @extend_schema(
        operation_id="admin_user_activity_report",
        summary="User activity report",
        parameters=[OpenApiParameter("days", int, description="Look-back window, default 30")],
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Report"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid window"),
        },
        tags=["Admin"],
    )
    def user_activity_report(self, request):
        result = self.get_service().user_activity_report(request.query_params.get("days"))
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "User activity report generated")
