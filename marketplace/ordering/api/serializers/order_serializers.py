from rest_framework import serializers

from infrastructure.payments.interface import PaymentProviderInterface
from marketplace.catalog.api.serializers import UserSummarySerializer
from marketplace.ordering.domain.models.order import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True)
    seller = UserSummarySerializer(read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product_id", "product_name", "seller", "quantity", "price_at_purchase", "line_total"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    buyer = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer",
            "status",
            "payment_status",
            "payment_method",
            "subtotal",
            "service_fee",
            "total",
            "delivery_address",
            "delivery_city",
            "delivery_state",
            "delivery_zip",
            "items",
            "created_at",
            "updated_at",
            "paid_at",
            "completed_at",
            "cancelled_at",
        ]
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    delivery_address = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")
    delivery_city = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    delivery_state = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    delivery_zip = serializers.CharField(required=False, allow_blank=True, max_length=20, default="")

    def delivery(self):
        data = self.validated_data
        return {
            "address": data.get("delivery_address"),
            "city": data.get("delivery_city"),
            "state": data.get("delivery_state"),
            "zip": data.get("delivery_zip"),
        }


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.CharField()


class CheckoutSerializer(serializers.Serializer):
    payment_type = serializers.CharField(
        help_text=f"One of {', '.join(PaymentProviderInterface.SUPPORTED_PAYMENT_TYPES)}"
    )
    payment_token = serializers.CharField(required=False, allow_blank=True, default="")


class MonthlySalesSerializer(serializers.Serializer):
    month = serializers.IntegerField()
    order_count = serializers.IntegerField()
    total_sales = serializers.DecimalField(max_digits=14, decimal_places=2)
