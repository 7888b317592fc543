"""
API error shape and the domain exceptions shared by the apps.

Every error leaves the API as {"error": "<message>"}; validation errors also
carry the per-field "details" produced by the serializer.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(exceptions.APIException):
    """The requested dates clash with another booking or a blocked calendar day."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with existing data."
    default_code = "conflict"


class InvalidTransition(exceptions.APIException):
    """A status change that the booking/payment state machine does not allow."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This status change is not allowed."
    default_code = "invalid_transition"


class PaymentError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The payment could not be processed."
    default_code = "payment_error"


def _first_message(data):
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        if "non_field_errors" in data:
            return _first_message(data["non_field_errors"])
        for field, value in data.items():
            return f"{field}: {_first_message(value)}"
        return "Invalid request."
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else "Invalid request."
    return str(data)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s: %s",
            view.__class__.__name__ if view is not None else "-",
            exc,
            exc_info=exc,
        )
        return Response(
            {"error": "An unexpected error occurred"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    original = response.data
    body = {"error": _first_message(original)}
    if isinstance(exc, exceptions.ValidationError) and isinstance(original, dict):
        body["details"] = original
    response.data = body
    return response
