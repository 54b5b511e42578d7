from decimal import Decimal
from unittest.mock import patch

import stripe
from django.test import SimpleTestCase, override_settings

from core.payments.exceptions import GatewayError, PaymentValidationError, SignatureInvalid
from core.payments.gateway import StripeGateway, map_intent_status, to_minor_units
from core.payments.models import PaymentStatus

from .helpers import WEBHOOK_SECRET, fake_intent, sign_payload, stripe_event


class StripeGatewayTests(SimpleTestCase):
    def setUp(self):
        self.gateway = StripeGateway(api_key="sk_test_key", webhook_secret=WEBHOOK_SECRET)

    def test_minor_units(self):
        self.assertEqual(to_minor_units(Decimal("49.99"), "USD"), 4999)
        self.assertEqual(to_minor_units(Decimal("10"), "eur"), 1000)
        self.assertEqual(to_minor_units(Decimal("1500"), "JPY"), 1500)

    def test_intent_status_mapping(self):
        self.assertEqual(map_intent_status("succeeded"), PaymentStatus.SUCCEEDED)
        self.assertEqual(map_intent_status("processing"), PaymentStatus.PROCESSING)
        self.assertEqual(map_intent_status("requires_payment_method"), PaymentStatus.PENDING)
        self.assertEqual(map_intent_status("canceled"), PaymentStatus.CANCELLED)
        self.assertEqual(map_intent_status("requires_capture"), PaymentStatus.FAILED)
        self.assertEqual(map_intent_status(None), PaymentStatus.FAILED)

    @override_settings(
        STRIPE_SECRET_KEY="sk_test_from_settings",
        STRIPE_WEBHOOK_SECRET="whsec_settings",
        STRIPE_WEBHOOK_TOLERANCE=60,
    )
    def test_from_settings(self):
        gateway = StripeGateway.from_settings()
        self.assertEqual(gateway.api_key, "sk_test_from_settings")
        self.assertEqual(gateway.webhook_secret, "whsec_settings")
        self.assertEqual(gateway.webhook_tolerance, 60)

    @patch("core.payments.gateway.stripe.PaymentIntent.retrieve")
    def test_retrieve_status_passes_key(self, retrieve):
        retrieve.return_value = fake_intent("pi_1", status="succeeded")

        self.assertEqual(self.gateway.retrieve_status("pi_1"), PaymentStatus.SUCCEEDED)
        retrieve.assert_called_once_with("pi_1", api_key="sk_test_key")

    def test_retrieve_without_reference_fails(self):
        with self.assertRaises(GatewayError):
            self.gateway.retrieve_status("")

    @patch("core.payments.gateway.stripe.PaymentIntent.retrieve")
    def test_stripe_errors_become_gateway_errors(self, retrieve):
        retrieve.side_effect = stripe.StripeError("No such payment_intent")

        with self.assertRaises(GatewayError) as ctx:
            self.gateway.retrieve_status("pi_missing")
        self.assertIn("No such payment_intent", ctx.exception.message)

    def test_verify_webhook_returns_event(self):
        payload = stripe_event("payment_intent.succeeded", {"id": "pi_1"})

        event = self.gateway.verify_webhook(payload.encode("utf-8"), sign_payload(payload))

        self.assertEqual(event["type"], "payment_intent.succeeded")
        self.assertEqual(event["data"]["object"]["id"], "pi_1")

    def test_verify_webhook_rejects_bad_signatures(self):
        payload = stripe_event("payment_intent.succeeded", {"id": "pi_1"})
        for signature in (None, "", "garbage", sign_payload(payload, secret="whsec_other")):
            with self.subTest(signature=signature), self.assertRaises(SignatureInvalid):
                self.gateway.verify_webhook(payload.encode("utf-8"), signature)

    def test_verify_webhook_rejects_non_object_body(self):
        payload = "[1, 2, 3]"
        with self.assertRaises(PaymentValidationError):
            self.gateway.verify_webhook(payload.encode("utf-8"), sign_payload(payload))
