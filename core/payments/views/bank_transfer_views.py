"""
Bank Transfer Views

- POST /api/banktransfer/initiate/                  → bank details + reference number
- POST /api/banktransfer/confirm/                   → student submits transfer evidence
- POST /api/banktransfer/verify/<transactionId>/    → admin verifies or rejects
- GET  /api/banktransfer/status/<transactionId>/    → transfer incl. payment status
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsOwnerOrAdmin, IsPlatformAdmin
from ..serializers import (
    BankTransferConfirmSerializer,
    BankTransferInitiateSerializer,
    BankTransferPaymentSerializer,
    BankTransferVerifySerializer,
)
from ..services import BankTransferService


class BankTransferInitiateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = BankTransferInitiateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bank_transfer = BankTransferService().create_bank_transfer_details(
            student=request.user, **serializer.validated_data
        )
        payment = bank_transfer.payment
        return Response(
            {
                "transactionId": payment.transaction_id,
                "referenceNumber": bank_transfer.reference_number,
                "bankDetails": {
                    "bankName": bank_transfer.bank_name,
                    "accountNumber": bank_transfer.account_number,
                    "accountHolder": bank_transfer.account_holder,
                },
                "amount": f"{payment.amount:.2f}",
                "currency": payment.currency,
            },
            status=status.HTTP_201_CREATED,
        )


class BankTransferConfirmView(APIView):
    permission_classes = [IsOwnerOrAdmin]
    owner_attribute = "payment.student_id"

    def post(self, request):
        serializer = BankTransferConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        service = BankTransferService()
        self.check_object_permissions(request, service.get_bank_transfer(data["transaction_id"]))

        bank_transfer = service.confirm_bank_transfer(data.pop("transaction_id"), **data)
        return Response(
            {
                "message": "Bank transfer confirmation received. Awaiting verification.",
                "bankTransfer": BankTransferPaymentSerializer(bank_transfer).data,
            },
            status=status.HTTP_200_OK,
        )


class BankTransferVerifyView(APIView):
    """Admin only."""

    permission_classes = [IsPlatformAdmin]

    def post(self, request, transaction_id):
        serializer = BankTransferVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bank_transfer = BankTransferService().verify_bank_transfer(
            transaction_id,
            serializer.validated_data["is_verified"],
            notes=serializer.validated_data.get("notes"),
        )
        return Response(
            BankTransferPaymentSerializer(bank_transfer).data, status=status.HTTP_200_OK
        )


class BankTransferStatusView(APIView):
    permission_classes = [IsOwnerOrAdmin]
    owner_attribute = "payment.student_id"

    def get(self, request, transaction_id):
        bank_transfer = BankTransferService().get_bank_transfer(transaction_id)
        self.check_object_permissions(request, bank_transfer)
        return Response(
            BankTransferPaymentSerializer(bank_transfer).data, status=status.HTTP_200_OK
        )
