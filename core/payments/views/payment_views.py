"""
Payment Views (core.payments)
=============================

Endpoints
---------

1. GetPaymentConfigView
   - URL: /api/payments/config/
   - Method: GET
   - Auth: None
   - Purpose:
       Returns the correct publishable key so the frontend can
       initialize Stripe.js safely.

2. InitiatePaymentView
   - URL: /api/payments/initiate/
   - Method: POST
   - Body: {"courseId": "...", "amount": "49.00", "currency": "USD", "provider": "Stripe"}
   - Auth: Required
   - Purpose:
       Creates a Pending payment for the authenticated student. For Stripe
       the response carries the PaymentIntent client secret.

3. ConfirmPaymentView
   - URL: /api/payments/confirm/
   - Method: POST
   - Body: {"transactionId": "...", "studentId": 7, "status": "...", "notes": "..."}
   - Auth: Required (own student id, or admin)
   - Purpose:
       Re-reads the payment status from Stripe and enrolls the student
       once the payment succeeded.

4. PaymentStatusView
   - URL: /api/payments/status/<transactionId>/
   - Method: GET
   - Auth: Owner or admin

5. PaymentHistoryListView / PaymentHistoryDetailView
   - URL: /api/payments/history/ and /api/payments/history/<paymentId>/
   - Method: GET
   - Auth: Required (list: own payments; detail: owner or admin)
   - Purpose:
       Purchase history of the student, including the invoice id once
       an invoice was issued.

Author: EduPlatform Development Team
Date: 2025-09-03
"""

from django.conf import settings
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsOwnerOrAdmin, is_platform_admin
from ..gateway import get_gateway
from ..models import Payment
from ..serializers import (
    ConfirmPaymentSerializer,
    InitiatePaymentSerializer,
    PaymentHistorySerializer,
    PaymentSerializer,
)
from ..services import PaymentService


class GetPaymentConfigView(APIView):
    """
    endpoint so the frontend can initialize Stripe.js
    """
    permission_classes = [AllowAny]

    def get(self, request):
        publishable_key = (
            settings.STRIPE_LIVE_PUBLISHABLE_KEY
            if settings.STRIPE_LIVE_MODE
            else settings.STRIPE_TEST_PUBLISHABLE_KEY
        )
        return Response(
            {
                "publishableKey": publishable_key,
                "defaultCurrency": settings.DEFAULT_CURRENCY,
                "currencies": settings.SUPPORTED_CURRENCIES,
            },
            status=200,
        )


class InitiatePaymentView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = PaymentService(gateway=get_gateway())
        result = service.initiate_payment(student=request.user, **serializer.validated_data)

        return Response(
            {"transactionId": result.transaction_id, "clientSecret": result.client_secret},
            status=status.HTTP_201_CREATED,
        )


class ConfirmPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["student_id"] != request.user.id and not is_platform_admin(request.user):
            raise PermissionDenied("You can only confirm your own payments.")

        service = PaymentService(gateway=get_gateway())
        payment = service.confirm_payment(
            data["transaction_id"],
            data["student_id"],
            status=data.get("status"),
            notes=data.get("notes"),
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


class PaymentStatusView(APIView):
    permission_classes = [IsOwnerOrAdmin]

    def get(self, request, transaction_id):
        payment = PaymentService().get_payment_status(transaction_id)
        self.check_object_permissions(request, payment)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


class PaymentHistoryListView(generics.ListAPIView):
    """Payments of the logged-in student, newest first."""

    serializer_class = PaymentHistorySerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return (
            Payment.objects.filter(student=self.request.user)
            .select_related("course", "invoice")
            .order_by("-created_at")
        )


class PaymentHistoryDetailView(generics.RetrieveAPIView):
    serializer_class = PaymentHistorySerializer
    permission_classes = [IsOwnerOrAdmin]
    queryset = Payment.objects.select_related("course", "invoice")
