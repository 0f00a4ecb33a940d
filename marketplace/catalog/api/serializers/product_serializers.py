from rest_framework import serializers

from marketplace.catalog.domain.models.catalog import Product

from .user_serializers import UserSummarySerializer


class ProductListSerializer(serializers.ModelSerializer):
    """Minimal product serializer for lists, carts and order lines"""

    seller = UserSummarySerializer(read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "price", "category", "condition", "location", "status", "seller", "created_at"]
        read_only_fields = fields


class ProductDetailSerializer(ProductListSerializer):
    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + ["description", "views", "interested", "updated_at"]
        read_only_fields = fields


class ProductCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    condition = serializers.ChoiceField(choices=Product.CONDITION_CHOICES, default="good")
    location = serializers.CharField(required=False, allow_blank=True, max_length=200, default="")


class ProductReviewDecisionSerializer(serializers.Serializer):
    """Admin decision on a pending listing."""

    status = serializers.ChoiceField(choices=[Product.STATUS_ACTIVE, Product.STATUS_REJECTED])


class ProductUpdateSerializer(serializers.Serializer):
    """Partial edit; ``status`` is honoured for admins only."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    condition = serializers.ChoiceField(choices=Product.CONDITION_CHOICES, required=False)
    location = serializers.CharField(required=False, allow_blank=True, max_length=200)
    status = serializers.ChoiceField(choices=Product.STATUS_CHOICES, required=False)


class ProductStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            Product.STATUS_ACTIVE,
            Product.STATUS_PENDING,
            Product.STATUS_REJECTED,
            Product.STATUS_SUSPENDED,
        ]
    )
