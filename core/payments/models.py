"""
Payment Models

Persistent records of the payment workflow.

Models:
- Payment: One purchase attempt of a course, through Stripe or bank transfer
- BankTransferPayment: Bank details and verification state of a transfer
- Invoice: PDF invoice issued for a succeeded payment
- WebhookEvent: Received provider events, used for de-duplication

Payments are never deleted. Once a payment reaches a terminal status
(Succeeded, Failed, Cancelled) it does not change anymore; see
``PaymentService.apply_status``.

Author: EduPlatform Development Team
Version: 1.0.0
"""

import uuid
from string import ascii_uppercase, digits

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.translation import gettext_lazy as _


class PaymentStatus(models.TextChoices):
    PENDING = "Pending", _("Pending")
    PROCESSING = "Processing", _("Processing")
    SUCCEEDED = "Succeeded", _("Succeeded")
    FAILED = "Failed", _("Failed")
    CANCELLED = "Cancelled", _("Cancelled")


TERMINAL_STATUSES = frozenset(
    {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)


def generate_transaction_id() -> str:
    return str(uuid.uuid4())


def generate_reference_number() -> str:
    """Bank transfer reference, e.g. ``BT-2025-7KQ2X``."""
    suffix = get_random_string(5, allowed_chars=ascii_uppercase + digits)
    return f"BT-{timezone.now().year}-{suffix}"


class Payment(models.Model):
    """
    A single attempt to pay for a course.

    Attributes:
        transaction_id: Public identifier handed to clients
        course: Purchased course
        student: Paying user; may stay empty until the payment is confirmed
        amount: Amount in ``currency`` (major units)
        provider: Stripe or BankTransfer
        gateway_reference: Provider-side id (Stripe PaymentIntent id)
        status: One of ``PaymentStatus``
        notes: Append-only audit lines

    Example:
        >>> payment = Payment.objects.create(course=course, amount=49, currency="USD",
        ...                                  provider=Payment.Provider.BANK_TRANSFER)
        >>> payment.status  # "Pending"
    """

    class Provider(models.TextChoices):
        STRIPE = "Stripe", _("Stripe")
        BANK_TRANSFER = "BankTransfer", _("Bank Transfer")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction_id = models.CharField(
        max_length=64,
        unique=True,
        default=generate_transaction_id,
        verbose_name=_("Transaction ID"),
    )
    course = models.ForeignKey(
        "courses.Course",
        on_delete=models.PROTECT,
        related_name="payments",
        verbose_name=_("Course"),
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
        verbose_name=_("Student"),
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        verbose_name=_("Amount"),
    )
    currency = models.CharField(
        max_length=3,
        verbose_name=_("Currency"),
        help_text=_("ISO 4217 currency code, upper case"),
    )
    provider = models.CharField(
        max_length=20,
        choices=Provider.choices,
        verbose_name=_("Provider"),
    )
    gateway_reference = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        verbose_name=_("Gateway Reference"),
        help_text=_("Provider-side identifier, e.g. the Stripe PaymentIntent id"),
    )
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        verbose_name=_("Status"),
    )
    notes = models.TextField(blank=True, verbose_name=_("Notes"))
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        db_table = "payments_payment"
        indexes = [
            models.Index(
                fields=["course", "student", "status"],
                name="payment_course_student_idx",
            )
        ]

    def __str__(self) -> str:
        return f"{self.transaction_id} ({self.provider}, {self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def append_note(self, line: str) -> None:
        """Add a timestamped audit line (not saved)."""
        stamp = timezone.now().strftime("%Y-%m-%d %H:%M:%S")
        entry = f"[{stamp}] {line}"
        self.notes = f"{self.notes}\n{entry}" if self.notes else entry


class BankTransferPayment(models.Model):
    """
    Bank transfer details of a payment.

    Lifecycle: Pending → Verified | Rejected. Both end states are final.
    A verified transfer settles the owning payment.
    """

    class Status(models.TextChoices):
        PENDING = "Pending", _("Pending")
        VERIFIED = "Verified", _("Verified")
        REJECTED = "Rejected", _("Rejected")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment = models.OneToOneField(
        Payment,
        on_delete=models.CASCADE,
        related_name="bank_transfer",
        verbose_name=_("Payment"),
    )
    bank_name = models.CharField(max_length=200, verbose_name=_("Bank Name"))
    account_number = models.CharField(max_length=100, verbose_name=_("Account Number"))
    account_holder = models.CharField(max_length=200, verbose_name=_("Account Holder"))
    reference_number = models.CharField(
        max_length=100,
        default=generate_reference_number,
        db_index=True,
        verbose_name=_("Reference Number"),
    )
    transfer_date = models.DateTimeField(null=True, blank=True)
    receipt_image_url = models.URLField(max_length=500, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
        verbose_name=_("Status"),
    )
    verification_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Bank Transfer")
        verbose_name_plural = _("Bank Transfers")
        ordering = ["-created_at"]
        db_table = "payments_banktransferpayment"

    def __str__(self) -> str:
        return f"{self.reference_number} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status != self.Status.PENDING


class Invoice(models.Model):
    """PDF invoice for a succeeded payment. At most one per payment."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    payment = models.OneToOneField(
        Payment,
        on_delete=models.PROTECT,
        related_name="invoice",
        verbose_name=_("Payment"),
    )
    invoice_number = models.CharField(
        max_length=40,
        unique=True,
        verbose_name=_("Invoice Number"),
        help_text=_("INV-<yyyyMMdd>-<first 8 characters of the payment id>"),
    )
    issue_date = models.DateTimeField(verbose_name=_("Issue Date"))
    file_path = models.CharField(max_length=500, verbose_name=_("File Path"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Invoice")
        verbose_name_plural = _("Invoices")
        ordering = ["-issue_date"]
        db_table = "payments_invoice"

    def __str__(self) -> str:
        return self.invoice_number


class WebhookEvent(models.Model):
    """A provider event as received on the webhook endpoint."""

    event_id = models.CharField(max_length=255, unique=True, verbose_name=_("Event ID"))
    event_type = models.CharField(max_length=100, db_index=True, verbose_name=_("Event Type"))
    payload = models.JSONField(default=dict)
    processed = models.BooleanField(default=False)
    error_message = models.TextField(blank=True)
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Webhook Event")
        verbose_name_plural = _("Webhook Events")
        ordering = ["-received_at"]
        db_table = "payments_webhookevent"

    def __str__(self) -> str:
        return f"{self.event_type} ({self.event_id})"
