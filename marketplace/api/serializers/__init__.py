# Response serializers for API documentation
from .response_serializers import ErrorResponseSerializer, PaginatedResponseSerializer, SuccessResponseSerializer


__all__ = [
    "ErrorResponseSerializer",
    "PaginatedResponseSerializer",
    "SuccessResponseSerializer",
]
