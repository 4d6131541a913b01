from django.db import DatabaseError
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("felicity.api")


def _first_code(codes):
    """Pick a single reason code out of DRF's (possibly nested) get_codes()."""
    if isinstance(codes, str):
        return codes
    if isinstance(codes, dict):
        for value in codes.values():
            return _first_code(value)
    if isinstance(codes, list) and codes:
        return _first_code(codes[0])
    return "error"


def _first_message(data):
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        for key, value in data.items():
            return f"{key}: {_first_message(value)}"
    if isinstance(data, list) and data:
        return _first_message(data[0])
    return "Request failed."


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format:

        {"success": false, "status_code": 409, "code": "event_full",
         "message": "...", "errors": {...}}

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        code = getattr(exc, "code", None)
        if code is None and hasattr(exc, "get_codes"):
            code = _first_code(exc.get_codes())
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "code": code or "error",
                "message": getattr(exc, "message", None) or _first_message(response.data),
                "errors": response.data,
            },
            status=response.status_code,
            headers={
                name: response[name]
                for name in ("Retry-After", "WWW-Authenticate", "Allow")
                if response.has_header(name)
            },
        )

    # Storage unavailable: fatal for this request, no retry here
    if isinstance(exc, DatabaseError):
        logger.exception("Storage error while handling request", exc_info=exc)
        return Response(
            {
                "success": False,
                "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
                "code": "storage_unavailable",
                "message": "The service is temporarily unavailable.",
                "errors": {"detail": "Storage unavailable."},
            },
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "code": "server_error",
            "message": "Internal server error.",
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
