"""
Payment Custom Exceptions

Exception hierarchy of the payment workflow. Every exception carries the
HTTP status it maps to, so views can raise them directly and leave the
rendering to ``api_exception_handler`` (registered as DRF
``EXCEPTION_HANDLER`` in the settings).

Author: EduPlatform Development Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """
    Base exception class for all payment related errors.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status code the error is rendered with
        error_code (str): Stable machine-readable code
        details (Dict[str, Any]): Additional error details

    Example:
        >>> try:
        ...     service.get_payment_status("unknown")
        ... except PaymentError as e:
        ...     logger.warning("Payment error: %s", e.message)
    """

    default_message = "Payment processing failed."
    status_code = 400
    error_code = "payment_error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }


class NotFound(PaymentError):
    """Referenced payment, transfer, course or invoice does not exist."""

    default_message = "Resource not found."
    status_code = 404
    error_code = "not_found"


class AlreadyPurchased(PaymentError):
    """The student already owns the course through a succeeded payment."""

    default_message = "Course already purchased."
    status_code = 409
    error_code = "already_purchased"


class GatewayError(PaymentError):
    """The payment provider rejected a call or could not be reached."""

    default_message = "Payment gateway error."
    status_code = 502
    error_code = "gateway_error"


class SignatureInvalid(PaymentError):
    """Webhook signature missing, malformed, stale or not matching."""

    default_message = "Invalid webhook signature."
    status_code = 400
    error_code = "signature_invalid"


class PaymentValidationError(PaymentError):
    default_message = "Invalid payment request."
    status_code = 400
    error_code = "validation_error"


class InvalidStateTransition(PaymentError):
    default_message = "The requested state transition is not allowed."
    status_code = 409
    error_code = "invalid_state_transition"


def api_exception_handler(exc, context):
    """
    DRF exception handler rendering every error as ``{"error": ...}``.

    Payment errors are rendered from ``to_dict()``; DRF's own exceptions
    keep their status code and get their detail moved under ``error``
    (serializer field errors go to ``details``).
    """
    if isinstance(exc, PaymentError):
        view = context.get("view")
        logger.warning(
            "%s in %s: %s",
            exc.__class__.__name__,
            view.__class__.__name__ if view else "unknown view",
            exc.message,
        )
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            "error": "Invalid request data.",
            "code": "validation_error",
            "details": response.data,
        }
    elif isinstance(response.data, dict) and "detail" in response.data:
        detail = response.data["detail"]
        response.data = {
            "error": str(detail),
            "code": getattr(detail, "code", "error"),
            "details": {},
        }
    return response
