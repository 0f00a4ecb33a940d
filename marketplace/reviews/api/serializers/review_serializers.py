from rest_framework import serializers

from marketplace.catalog.api.serializers import UserSummarySerializer
from marketplace.reviews.domain.models import Review


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserSummarySerializer(read_only=True)
    seller_id = serializers.UUIDField(read_only=True)
    product_id = serializers.UUIDField(read_only=True, allow_null=True)
    product_name = serializers.CharField(source="product.name", read_only=True, default=None)

    class Meta:
        model = Review
        fields = ["id", "reviewer", "seller_id", "product_id", "product_name", "rating", "comment", "created_at", "updated_at"]
        read_only_fields = fields


class CreateReviewSerializer(serializers.Serializer):
    seller_id = serializers.UUIDField()
    product_id = serializers.UUIDField(required=False, allow_null=True)
    rating = serializers.JSONField(help_text="Whole number from 1 to 5")
    comment = serializers.CharField(required=False, allow_blank=True, default="")


class UpdateReviewSerializer(serializers.Serializer):
    rating = serializers.JSONField(required=False, help_text="Whole number from 1 to 5")
    comment = serializers.CharField(required=False, allow_blank=True)


class RatingStatsSerializer(serializers.Serializer):
    average = serializers.DecimalField(max_digits=3, decimal_places=2)
    total = serializers.IntegerField()
    distribution = serializers.DictField(child=serializers.IntegerField())


class ReviewEligibilitySerializer(serializers.Serializer):
    can_review = serializers.BooleanField()
    has_purchased = serializers.BooleanField()
    has_reviewed = serializers.BooleanField()
