"""
Stripe webhook endpoint.

Stripe posts events to /api/webhooks/payment/ without user authentication;
the request is trusted only after the Stripe-Signature header has been
verified against STRIPE_WEBHOOK_SECRET. Invalid signatures are answered
with 400 and leave no trace in the database.
"""

from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from ..gateway import get_gateway
from ..services import WebhookService


class PaymentWebhookView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        # The signature covers the exact bytes Stripe sent, so read the raw body
        payload = request.body
        signature = request.META.get("HTTP_STRIPE_SIGNATURE")

        event = WebhookService(gateway=get_gateway()).handle(payload, signature)
        return Response({"received": True, "eventId": event.event_id}, status=200)
