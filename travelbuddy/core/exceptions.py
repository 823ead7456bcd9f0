"""API error taxonomy and the DRF exception handler.

Every failure leaves the API as ``{"message": "<human readable>"}``; validation
failures additionally carry the field-level ``errors`` mapping so forms can
render messages inline.
"""

from __future__ import annotations

import logging
from typing import Any

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler
from rest_framework.views import set_rollback

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class Conflict(APIException):
    """Request clashes with current state (duplicate email, duplicate join...)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request conflicts with the current state."
    default_code = "conflict"


class InvalidCredentials(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid credentials"
    default_code = "invalid_credentials"


def _first_message(data: Any) -> str:
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        for value in data.values():
            return _first_message(value)
        return ""
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error(
            "Unhandled error in %s",
            type(view).__name__ if view is not None else "unknown view",
            exc_info=exc,
        )
        set_rollback()
        return Response(
            {"message": SERVER_ERROR_MESSAGE},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = response.data
    body: dict[str, Any] = {"message": _first_message(data)}
    if isinstance(data, dict) and "detail" not in data:
        body["errors"] = data
    elif isinstance(data, list):
        body["errors"] = {"non_field_errors": data}
    response.data = body
    return response
