from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, paginated_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer
from marketplace.moderation.api.serializers import CreateReportSerializer, ReportSerializer, ReportStatusSerializer
from marketplace.moderation.domain.services import ReportService
from marketplace.permissions import IsAdminUser


class ReportViewSet(viewsets.ViewSet):
    """
    Users report other users or listings; admins work the queue.
    """

    def get_service(self) -> ReportService:
        return container.report_service()

    def get_permissions(self):
        if self.action in ["create", "check"]:
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsAdminUser()]

    def get_serializer_context(self):
        return {"request": self.request, "report_service": self.get_service()}

    @extend_schema(
        operation_id="reports_create",
        summary="Report a user or listing",
        description="""
        **What it receives:**
        - `type`: "User" or "Listing"
        - `item_id`: UUID of the user or product
        - `reason`: free text

        **What it returns:**
        - The report. Reporting yourself, your own listing, or the same item
          twice is rejected.
        """,
        request=CreateReportSerializer,
        responses={
            201: OpenApiResponse(response=ReportSerializer, description="Report filed"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid report"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Reported item not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already reported"),
        },
        tags=["Marketplace - Reports"],
    )
    def create(self, request):
        serializer = CreateReportSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        data = serializer.validated_data
        result = self.get_service().create_report(request.user, data["type"], data["item_id"], data["reason"])
        if not result.ok:
            return error_response(result)
        return success_response(
            ReportSerializer(result.value, context=self.get_serializer_context()).data,
            "Report submitted successfully",
            status_code=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="reports_list",
        summary="Report queue (admin)",
        parameters=[
            OpenApiParameter("status", str, enum=["pending", "resolved", "dismissed"]),
            OpenApiParameter("type", str, enum=["User", "Listing"]),
            OpenApiParameter("page", int),
            OpenApiParameter("page_size", int),
        ],
        responses={200: OpenApiResponse(response=PaginatedResponseSerializer, description="Reports retrieved")},
        tags=["Marketplace - Reports (Admin)"],
    )
    def list(self, request):
        params = request.query_params
        result = self.get_service().list_reports(
            params.get("status"), params.get("type"), params.get("page"), params.get("page_size")
        )
        if not result.ok:
            return error_response(result)
        return paginated_response(
            result.value, ReportSerializer, "Reports retrieved successfully", context=self.get_serializer_context()
        )

    @extend_schema(
        operation_id="reports_retrieve",
        summary="Report detail (admin)",
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Report retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Report not found"),
        },
        tags=["Marketplace - Reports (Admin)"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_report(pk)
        if not result.ok:
            return error_response(result)
        return success_response(ReportSerializer(result.value, context=self.get_serializer_context()).data)

    @extend_schema(
        operation_id="reports_update_status",
        summary="Resolve or dismiss a report (admin)",
        description="""
        **What it receives:**
        - `status`: pending, resolved or dismissed

        **What it returns:**
        - The report. Resolving a Listing report suspends the listing.
        """,
        request=ReportStatusSerializer,
        responses={
            200: OpenApiResponse(response=ReportSerializer, description="Status updated"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Report not found"),
        },
        tags=["Marketplace - Reports (Admin)"],
    )
    def update_status(self, request, pk=None):
        serializer = ReportStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_report_status(pk, serializer.validated_data["status"])
        if not result.ok:
            return error_response(result)
        return success_response(
            ReportSerializer(result.value, context=self.get_serializer_context()).data, "Report status updated"
        )

    @extend_schema(
        operation_id="reports_delete",
        summary="Delete a report (admin)",
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Report deleted"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Report not found"),
        },
        tags=["Marketplace - Reports (Admin)"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_report(pk)
        if not result.ok:
            return error_response(result)
        return success_response(message="Report deleted successfully")

    @extend_schema(
        operation_id="reports_stats",
        summary="Report counts (admin)",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Statistics")},
        tags=["Marketplace - Reports (Admin)"],
    )
    def stats(self, request):
        result = self.get_service().get_stats()
        if not result.ok:
            return error_response(result)
        return success_response(result.value, "Report statistics retrieved")

    @extend_schema(
        operation_id="reports_pending_count",
        summary="Pending report count (admin)",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Pending count")},
        tags=["Marketplace - Reports (Admin)"],
    )
    def pending_count(self, request):
        return success_response({"count": self.get_service().get_pending_count()})

    @extend_schema(
        operation_id="reports_check",
        summary="Has the current user already reported this item",
        responses={200: OpenApiResponse(response=SuccessResponseSerializer, description="Reported flag")},
        tags=["Marketplace - Reports"],
    )
    def check(self, request, report_type=None, item_id=None):
        return success_response({"has_reported": self.get_service().has_reported(request.user, report_type, item_id)})
