from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from infrastructure.container import container
from marketplace.api.responses import error_response, success_response, validation_error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.permissions import IsAdminUser
from marketplace.settings_provider.api.serializers import PlatformSettingSerializer, UpdatePlatformSettingSerializer
from marketplace.settings_provider.domain.services import SettingsService


class PlatformSettingsViewSet(viewsets.ViewSet):
    def get_service(self) -> SettingsService:
        return container.settings_service()

    def get_permissions(self):
        if self.action == "retrieve":
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsAdminUser()]

    @extend_schema(
        operation_id="settings_get",
        summary="Platform settings",
        responses={200: OpenApiResponse(response=PlatformSettingSerializer, description="Current settings")},
        tags=["Marketplace - Settings"],
    )
    def retrieve(self, request):
        settings_row = self.get_service().get_settings()
        return success_response(PlatformSettingSerializer(settings_row).data, "Settings retrieved successfully")

    @extend_schema(
        operation_id="settings_update",
        summary="Update platform settings (admin)",
        description="""
        **What it receives:**
        - Any subset of the settings fields; omitted or null fields keep their value
        - `commission_rate` is a percentage (5.00 means 5%)

        **What it returns:**
        - The updated settings. New values apply to the next price calculation.
        """,
        request=UpdatePlatformSettingSerializer,
        responses={
            200: OpenApiResponse(response=PlatformSettingSerializer, description="Settings updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid value"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Admin access required"),
        },
        tags=["Marketplace - Settings"],
    )
    def update(self, request):
        serializer = UpdatePlatformSettingSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error_response(serializer.errors)

        result = self.get_service().update_settings(serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return success_response(PlatformSettingSerializer(result.value).data, "Settings updated successfully")

    @extend_schema(
        operation_id="settings_reset",
        summary="Restore default platform settings (admin)",
        request=None,
        responses={200: OpenApiResponse(response=PlatformSettingSerializer, description="Defaults restored")},
        tags=["Marketplace - Settings"],
    )
    def reset(self, request):
        result = self.get_service().reset_to_defaults()
        if not result.ok:
            return error_response(result)
        return success_response(PlatformSettingSerializer(result.value).data, "Settings reset to defaults")
