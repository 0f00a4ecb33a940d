from django.contrib.auth import get_user_model
from rest_framework import serializers

from marketplace.catalog.domain.models import Product

User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=30)
    last_name = serializers.CharField(max_length=30)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class AccountSerializer(serializers.ModelSerializer):
    """The signed-in user's own account."""

    name = serializers.CharField(source="display_name", read_only=True)
    is_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "name",
            "phone",
            "role",
            "is_admin",
            "account_status",
            "rating",
            "total_sales",
            "date_joined",
        ]
        read_only_fields = fields

    def get_is_admin(self, obj):
        return obj.is_admin()


class PublicProfileSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)
    active_listings = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "name", "first_name", "last_name", "rating", "total_sales", "date_joined", "active_listings"]
        read_only_fields = fields

    def get_active_listings(self, obj):
        return obj.products.filter(status=Product.STATUS_ACTIVE).count()


class ProfileUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=30, required=False)
    last_name = serializers.CharField(max_length=30, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)


class SaleSerializer(serializers.Serializer):
    """One sold order line as seen by its seller."""

    order_number = serializers.CharField(source="order.order_number")
    order_status = serializers.CharField(source="order.status")
    buyer = serializers.CharField(source="order.buyer.display_name")
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    quantity = serializers.IntegerField()
    price_at_purchase = serializers.DecimalField(max_digits=10, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    sold_at = serializers.DateTimeField(source="order.created_at")
