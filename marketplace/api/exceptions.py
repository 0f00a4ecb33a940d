from rest_framework.views import exception_handler


def envelope_exception_handler(exc, context):
    """
    DRF's handler, reshaped into the ``{success, message, error}`` envelope
    so authentication and permission failures look like service errors.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        body = {"success": False, "message": str(data["detail"]), "error": getattr(exc, "default_code", "error")}
    else:
        body = {"success": False, "message": "Invalid request data", "error": "validation_error", "errors": data}

    response.data = body
    return response
