"""
Response envelopes shared by the marketplace and messaging views.

Every body carries ``success`` and ``message``. Paginated lists add
``count``, ``total``, ``total_pages`` and ``current_page``.
"""

from rest_framework import status
from rest_framework.response import Response

from marketplace.services.base import ErrorCodes, ServiceResult


CATEGORY_STATUS = {
    ErrorCodes.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCodes.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCodes.UNAVAILABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.SERVER_FAULT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def success_response(data=None, message: str = "", status_code: int = status.HTTP_200_OK, **extra) -> Response:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return Response(body, status=status_code)


def paginated_response(page: dict, serializer_class, message: str = "", context=None, **extra) -> Response:
    """Serialize ``page["results"]`` from :func:`marketplace.services.base.paginate`."""
    data = serializer_class(page["results"], many=True, context=context or {}).data
    return success_response(
        data,
        message,
        count=page["count"],
        total=page["total"],
        total_pages=page["total_pages"],
        current_page=page["current_page"],
        **extra,
    )


def error_response(result: ServiceResult) -> Response:
    """Map a failed ServiceResult onto the HTTP status of its error category."""
    return Response(
        {"success": False, "message": result.error_detail, "error": result.error},
        status=CATEGORY_STATUS.get(result.category, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def validation_error_response(errors) -> Response:
    return Response(
        {
            "success": False,
            "message": "Invalid request data",
            "error": ErrorCodes.VALIDATION_ERROR,
            "errors": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def forbidden_response(message: str = "Admin access required") -> Response:
    return Response(
        {"success": False, "message": message, "error": ErrorCodes.PERMISSION_DENIED},
        status=status.HTTP_403_FORBIDDEN,
    )
