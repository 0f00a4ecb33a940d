from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class AdminUserSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "first_name",
            "last_name",
            "phone",
            "role",
            "account_status",
            "rating",
            "total_sales",
            "date_joined",
            "last_login",
        ]
        read_only_fields = fields


class UserStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=User.ACCOUNT_STATUS_CHOICES)


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES)
