"""
Response serializers for the API documentation.

These describe the response envelopes for OpenAPI schema generation.
They are NOT used for data validation, only for documentation in Swagger/ReDoc.
"""

from rest_framework import serializers


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    success = serializers.BooleanField(help_text="Always false")
    message = serializers.CharField(help_text="Human-readable error message")
    error = serializers.CharField(help_text="Error code identifier")
    errors = serializers.DictField(help_text="Field errors for invalid request bodies", required=False)


class SuccessResponseSerializer(serializers.Serializer):
    """Generic success response"""

    success = serializers.BooleanField(help_text="Always true")
    message = serializers.CharField(help_text="Success message")
    data = serializers.JSONField(help_text="Operation result", required=False)


class PaginatedResponseSerializer(SuccessResponseSerializer):
    """Paginated list response"""

    count = serializers.IntegerField(help_text="Rows on this page")
    total = serializers.IntegerField(help_text="Rows across all pages")
    total_pages = serializers.IntegerField(help_text="Number of pages")
    current_page = serializers.IntegerField(help_text="Current page number")
