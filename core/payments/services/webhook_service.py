"""
Stripe Webhook Handling (idempotent)
====================================

Processes webhook calls from Stripe. The raw body is verified against the
``Stripe-Signature`` header before anything is written; every event is
recorded in ``WebhookEvent`` so redeliveries are recognized and skipped.

Handled event types:
- ``payment_intent.succeeded``      → payment Succeeded, student enrolled
- ``payment_intent.processing``     → payment Processing
- ``payment_intent.payment_failed`` → payment Failed
- ``payment_intent.canceled``       → payment Cancelled
- ``charge.refunded``               → audit note on the payment

Other event types are acknowledged and ignored. Payments are matched by
PaymentIntent id, falling back to the ``transaction_id`` metadata set when
the intent was created.

Status changes go through ``PaymentService.apply_status``, the same
function the confirm endpoint uses, so both paths agree. A verified
``payment_intent.succeeded`` may also settle a payment that an earlier
confirm read as Failed.

Author: EduPlatform Development Team
Date: 2025-09-03
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction

from ..exceptions import PaymentError, PaymentValidationError
from ..gateway import StripeGateway, ZERO_DECIMAL_CURRENCIES
from ..models import Payment, PaymentStatus, WebhookEvent
from .payment_service import PaymentService

logger = logging.getLogger(__name__)

INTENT_EVENT_STATUS = {
    "payment_intent.succeeded": PaymentStatus.SUCCEEDED,
    "payment_intent.processing": PaymentStatus.PROCESSING,
    "payment_intent.payment_failed": PaymentStatus.FAILED,
    "payment_intent.canceled": PaymentStatus.CANCELLED,
}


# ---------- helpers ----------


def _extract_data_object(event: Dict[str, Any]) -> Dict[str, Any]:
    """Return the event's ``data.object`` payload, or ``{}``."""
    data = event.get("data")
    if isinstance(data, dict) and isinstance(data.get("object"), dict):
        return data["object"]
    return {}


def _format_minor_units(amount: Optional[int], currency: Optional[str]) -> str:
    code = (currency or "").upper()
    if amount is None:
        return f"? {code}".strip()
    if code in ZERO_DECIMAL_CURRENCIES:
        return f"{amount} {code}"
    return f"{Decimal(amount) / 100:.2f} {code}"


class WebhookService:
    def __init__(
        self,
        gateway: StripeGateway,
        payment_service: Optional[PaymentService] = None,
    ) -> None:
        self.gateway = gateway
        self.payment_service = payment_service or PaymentService(gateway=gateway)

    def handle(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verify, record and dispatch one webhook delivery.

        Raises:
            SignatureInvalid: Signature check failed; nothing was written
            PaymentValidationError: Event without id or type
        """
        event = self.gateway.verify_webhook(payload, signature)

        event_id = event.get("id")
        event_type = event.get("type")
        if not event_id or not event_type:
            raise PaymentValidationError("Webhook event is missing id or type.")

        record, created = WebhookEvent.objects.get_or_create(
            event_id=event_id,
            defaults={"event_type": event_type, "payload": event},
        )
        if not created and record.processed:
            logger.info("[webhook] duplicate %s (event_id=%s) ignored.", event_type, event_id)
            return record

        logger.info("[webhook] %s (event_id=%s)", event_type, event_id)
        obj = _extract_data_object(event)

        try:
            if event_type in INTENT_EVENT_STATUS:
                self._handle_payment_intent(obj, INTENT_EVENT_STATUS[event_type])
            elif event_type == "charge.refunded":
                self._handle_charge_refunded(obj)
            else:
                logger.debug("[webhook] unhandled event type %s.", event_type)
        except PaymentError as exc:
            # Acknowledge anyway, a redelivery would fail the same way
            logger.error("[webhook] %s failed for event %s: %s", event_type, event_id, exc.message)
            record.error_message = exc.message

        record.processed = True
        record.save(update_fields=["processed", "error_message"])
        return record

    def _find_payment(self, intent: Dict[str, Any]) -> Optional[Payment]:
        payment = self.payment_service.find_by_gateway_reference(intent.get("id") or "")
        if payment is not None:
            return payment

        transaction_id = (intent.get("metadata") or {}).get("transaction_id")
        if transaction_id:
            return Payment.objects.filter(transaction_id=transaction_id).first()
        return None

    def _handle_payment_intent(self, intent: Dict[str, Any], status: str) -> None:
        payment = self._find_payment(intent)
        if payment is None:
            logger.warning(
                "[webhook] no payment for PaymentIntent %s; skipping.", intent.get("id")
            )
            return

        note = f"Webhook: PaymentIntent {intent.get('id')} is {status}."
        if status == PaymentStatus.FAILED:
            error = intent.get("last_payment_error") or {}
            if error.get("message"):
                note = f"{note} Reason: {error['message']}"

        self.payment_service.apply_status(
            payment, status, note=note, allow_from_failed=status == PaymentStatus.SUCCEEDED
        )

    def _handle_charge_refunded(self, charge: Dict[str, Any]) -> None:
        payment = self.payment_service.find_by_gateway_reference(
            charge.get("payment_intent") or ""
        )
        if payment is None:
            logger.warning(
                "[webhook] refund for unknown PaymentIntent %s; skipping.",
                charge.get("payment_intent"),
            )
            return

        refunded = _format_minor_units(charge.get("amount_refunded"), charge.get("currency"))
        with transaction.atomic():
            locked = Payment.objects.select_for_update().get(pk=payment.pk)
            locked.append_note(f"Refund recorded: {refunded} (charge {charge.get('id')}).")
            locked.save(update_fields=["notes", "updated_at"])
        logger.info("Refund of %s recorded for payment %s.", refunded, locked.transaction_id)
