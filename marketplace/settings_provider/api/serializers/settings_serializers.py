from rest_framework import serializers

from marketplace.settings_provider.domain.models import PlatformSetting


class PlatformSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlatformSetting
        fields = [
            "platform_name",
            "support_email",
            "items_per_page",
            "commission_rate",
            "min_commission",
            "require_email_verification",
            "require_admin_approval",
            "enable_two_factor",
            "updated_at",
        ]
        read_only_fields = fields


class UpdatePlatformSettingSerializer(serializers.Serializer):
    """Partial update; omitted or null fields keep their stored value."""

    platform_name = serializers.CharField(required=False, allow_null=True, max_length=100)
    support_email = serializers.EmailField(required=False, allow_null=True)
    items_per_page = serializers.IntegerField(required=False, allow_null=True)
    commission_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)
    min_commission = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    require_email_verification = serializers.BooleanField(required=False, allow_null=True)
    require_admin_approval = serializers.BooleanField(required=False, allow_null=True)
    enable_two_factor = serializers.BooleanField(required=False, allow_null=True)
