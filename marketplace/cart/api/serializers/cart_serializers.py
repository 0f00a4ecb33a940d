from rest_framework import serializers

from marketplace.cart.domain.models.cart import CartItem
from marketplace.catalog.api.serializers import ProductListSerializer


class CartItemSerializer(serializers.ModelSerializer):
    product = ProductListSerializer(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ["id", "product", "quantity", "line_total", "added_at"]
        read_only_fields = fields


class CartTotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    service_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_count = serializers.IntegerField()


class CartSerializer(CartTotalsSerializer):
    """Output of CartService.get_cart."""

    items = CartItemSerializer(many=True, read_only=True)


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class CartValidationSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    message = serializers.CharField()
    unavailable_items = CartItemSerializer(many=True)
    item_count = serializers.IntegerField()
