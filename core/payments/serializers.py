from decimal import Decimal

from rest_framework import serializers

from .models import BankTransferPayment, Invoice, Payment, PaymentStatus


# ---------- request bodies ----------


class InitiatePaymentSerializer(serializers.Serializer):
    courseId = serializers.UUIDField(source="course_id")
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01")
    )
    currency = serializers.CharField(min_length=3, max_length=3)
    provider = serializers.ChoiceField(choices=Payment.Provider.choices)


class ConfirmPaymentSerializer(serializers.Serializer):
    transactionId = serializers.CharField(source="transaction_id", max_length=64)
    studentId = serializers.IntegerField(source="student_id")
    status = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BankTransferInitiateSerializer(serializers.Serializer):
    courseId = serializers.UUIDField(source="course_id")
    amount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0.01")
    )
    currency = serializers.CharField(min_length=3, max_length=3)
    bankName = serializers.CharField(source="bank_name", max_length=200)
    accountNumber = serializers.CharField(source="account_number", max_length=100)
    accountHolder = serializers.CharField(source="account_holder", max_length=200)


class BankTransferConfirmSerializer(serializers.Serializer):
    transactionId = serializers.CharField(source="transaction_id", max_length=64)
    referenceNumber = serializers.CharField(source="reference_number", max_length=100)
    transferDate = serializers.DateTimeField(
        source="transfer_date", required=False, allow_null=True
    )
    receiptImageUrl = serializers.URLField(
        source="receipt_image_url", max_length=500, required=False, allow_null=True
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BankTransferVerifySerializer(serializers.Serializer):
    isVerified = serializers.BooleanField(source="is_verified")
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ---------- responses ----------


class PaymentSerializer(serializers.ModelSerializer):
    transactionId = serializers.CharField(source="transaction_id", read_only=True)
    courseId = serializers.UUIDField(source="course_id", read_only=True)
    studentId = serializers.IntegerField(source="student_id", read_only=True, allow_null=True)
    gatewayReference = serializers.CharField(source="gateway_reference", read_only=True)
    paidAt = serializers.DateTimeField(source="paid_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "transactionId",
            "courseId",
            "studentId",
            "amount",
            "currency",
            "provider",
            "gatewayReference",
            "status",
            "notes",
            "paidAt",
            "createdAt",
            "updatedAt",
        ]


class BankTransferPaymentSerializer(serializers.ModelSerializer):
    transactionId = serializers.CharField(source="payment.transaction_id", read_only=True)
    bankName = serializers.CharField(source="bank_name", read_only=True)
    accountNumber = serializers.CharField(source="account_number", read_only=True)
    accountHolder = serializers.CharField(source="account_holder", read_only=True)
    referenceNumber = serializers.CharField(source="reference_number", read_only=True)
    transferDate = serializers.DateTimeField(source="transfer_date", read_only=True)
    receiptImageUrl = serializers.CharField(source="receipt_image_url", read_only=True)
    verificationNotes = serializers.CharField(source="verification_notes", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    verifiedAt = serializers.DateTimeField(source="verified_at", read_only=True)
    payment = PaymentSerializer(read_only=True)

    class Meta:
        model = BankTransferPayment
        fields = [
            "id",
            "transactionId",
            "bankName",
            "accountNumber",
            "accountHolder",
            "referenceNumber",
            "transferDate",
            "receiptImageUrl",
            "status",
            "verificationNotes",
            "createdAt",
            "verifiedAt",
            "payment",
        ]


class InvoiceSerializer(serializers.ModelSerializer):
    invoiceId = serializers.UUIDField(source="id", read_only=True)
    invoiceNumber = serializers.CharField(source="invoice_number", read_only=True)
    paymentId = serializers.UUIDField(source="payment_id", read_only=True)
    issueDate = serializers.DateTimeField(source="issue_date", read_only=True)

    class Meta:
        model = Invoice
        fields = ["invoiceId", "invoiceNumber", "paymentId", "issueDate"]


class PaymentHistorySerializer(PaymentSerializer):
    courseTitle = serializers.CharField(source="course.title", read_only=True)
    isSuccessful = serializers.SerializerMethodField()
    invoiceId = serializers.SerializerMethodField()

    class Meta(PaymentSerializer.Meta):
        fields = PaymentSerializer.Meta.fields + ["courseTitle", "isSuccessful", "invoiceId"]

    def get_isSuccessful(self, obj) -> bool:
        return obj.status == PaymentStatus.SUCCEEDED

    def get_invoiceId(self, obj):
        invoice = getattr(obj, "invoice", None)
        return str(invoice.pk) if invoice is not None else None
