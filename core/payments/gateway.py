"""
Stripe Gateway Adapter (core.payments)
======================================

Thin adapter around the official ``stripe`` SDK. It is the only module of
the project that talks to Stripe.

Responsibilities
----------------
1. create_intent
   Creates a card PaymentIntent for a course purchase and returns its id,
   client secret and status. Amounts are converted to minor units
   (cents), zero-decimal currencies such as JPY are passed unchanged.

2. retrieve_status
   Reads the current status of a PaymentIntent and maps it onto our
   ``PaymentStatus`` values.

3. verify_webhook
   Verifies the ``Stripe-Signature`` header over the raw request body and
   returns the parsed event.

Configuration
-------------
The API key and webhook secret are passed to the constructor. Use
``StripeGateway.from_settings()`` (or ``get_gateway()``) to build one from
the Django settings. The adapter never sets ``stripe.api_key`` globally;
the key is handed to each SDK call.

Errors
------
SDK errors are re-raised as ``GatewayError`` carrying Stripe's user
message; signature problems as ``SignatureInvalid``.

Author: EduPlatform Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from .exceptions import GatewayError, PaymentValidationError, SignatureInvalid
from .models import PaymentStatus

logger = logging.getLogger(__name__)

# Currencies Stripe expects in major units (no cents)
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
        "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)

INTENT_STATUS_MAP = {
    "succeeded": PaymentStatus.SUCCEEDED,
    "processing": PaymentStatus.PROCESSING,
    "requires_payment_method": PaymentStatus.PENDING,
    "canceled": PaymentStatus.CANCELLED,
}


def map_intent_status(intent_status: Optional[str]) -> str:
    """Map a Stripe PaymentIntent status; anything unknown counts as Failed."""
    return INTENT_STATUS_MAP.get(intent_status or "", PaymentStatus.FAILED)


def to_minor_units(amount: Decimal, currency: str) -> int:
    if currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _stripe_message(exc: Exception) -> str:
    return getattr(exc, "user_message", None) or str(exc) or exc.__class__.__name__


@dataclass(frozen=True)
class GatewayIntent:
    id: str
    client_secret: str
    status: str


class StripeGateway:
    """Stripe implementation of the payment gateway used by ``PaymentService``."""

    def __init__(
        self,
        api_key: str,
        webhook_secret: str = "",
        webhook_tolerance: int = 300,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.webhook_tolerance = webhook_tolerance

    @classmethod
    def from_settings(cls) -> "StripeGateway":
        return cls(
            api_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            webhook_tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        )

    def create_intent(
        self,
        amount: Decimal,
        currency: str,
        metadata: Dict[str, str],
        description: str = "",
    ) -> GatewayIntent:
        """
        Create a card PaymentIntent.

        Args:
            amount: Amount in major units
            currency: ISO 4217 code
            metadata: Stored on the intent, used to match webhook events
            description: Shown in the Stripe dashboard

        Raises:
            GatewayError: Stripe rejected the call or was unreachable
        """
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=to_minor_units(amount, currency),
                currency=currency.lower(),
                payment_method_types=["card"],
                metadata=metadata,
                description=description,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe PaymentIntent creation failed: %s", exc)
            raise GatewayError(_stripe_message(exc)) from exc

        logger.info("Created PaymentIntent %s (status=%s).", intent.id, intent.status)
        return GatewayIntent(
            id=intent.id, client_secret=intent.client_secret, status=intent.status
        )

    def retrieve_status(self, intent_id: str) -> str:
        """Return the ``PaymentStatus`` value of the given PaymentIntent."""
        if not intent_id:
            raise GatewayError("Payment has no gateway reference.")
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.StripeError as exc:
            logger.warning("Stripe PaymentIntent %s lookup failed: %s", intent_id, exc)
            raise GatewayError(_stripe_message(exc)) from exc
        return map_intent_status(intent.status)

    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook body against its ``Stripe-Signature`` header.

        Returns:
            The event as a plain dict.

        Raises:
            SignatureInvalid: Secret not configured, header missing, or signature mismatch
            PaymentValidationError: Signed body is not a JSON object
        """
        if not self.webhook_secret:
            raise SignatureInvalid("Webhook secret is not configured.")
        if not signature:
            raise SignatureInvalid("Missing Stripe-Signature header.")

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SignatureInvalid("Webhook body is not valid UTF-8.") from exc

        try:
            stripe.WebhookSignature.verify_header(
                body, signature, self.webhook_secret, self.webhook_tolerance
            )
        except stripe.SignatureVerificationError as exc:
            raise SignatureInvalid(str(exc) or None) from exc

        try:
            event = json.loads(body)
        except ValueError as exc:
            raise PaymentValidationError("Webhook body is not valid JSON.") from exc
        if not isinstance(event, dict):
            raise PaymentValidationError("Webhook body must be a JSON object.")
        return event


def get_gateway() -> StripeGateway:
    return StripeGateway.from_settings()
