from rest_framework import serializers

from marketplace.catalog.api.serializers import UserSummarySerializer
from marketplace.moderation.domain.models import Report


class ReportSerializer(serializers.ModelSerializer):
    reported_by = UserSummarySerializer(read_only=True)
    item = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = ["id", "type", "item_id", "item", "reported_by", "reason", "status", "created_at", "updated_at"]
        read_only_fields = fields

    def get_item(self, obj):
        service = self.context.get("report_service")
        return service.describe_item(obj) if service is not None else None


class CreateReportSerializer(serializers.Serializer):
    type = serializers.CharField()
    item_id = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)


class ReportStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Report.STATUS_CHOICES)
