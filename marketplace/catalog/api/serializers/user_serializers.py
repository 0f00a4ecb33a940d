from django.contrib.auth import get_user_model
from rest_framework import serializers


User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    """Public seller/buyer card."""

    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "rating", "total_sales"]
        read_only_fields = fields
