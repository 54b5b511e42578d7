"""
Payments Django Admin Configuration

Back office views of payments, bank transfers, invoices and received
webhook events. Payments are read-only here: status changes must go
through the services so enrollments stay consistent. Bank transfers can
be verified or rejected in bulk through admin actions that call
``BankTransferService``.

Author: EduPlatform Development Team
Version: 1.0.0
"""

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .exceptions import PaymentError
from .models import BankTransferPayment, Invoice, Payment, WebhookEvent
from .services import BankTransferService


class BankTransferInline(admin.StackedInline):
    model = BankTransferPayment
    extra = 0
    can_delete = False
    readonly_fields = (
        "bank_name",
        "account_number",
        "account_holder",
        "reference_number",
        "transfer_date",
        "receipt_image_url",
        "status",
        "verification_notes",
        "verified_at",
    )


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Administration interface for payments.

    All fields are read-only; the change view serves as audit trail
    (status, gateway reference, notes).
    """

    list_display = (
        "transaction_id",
        "course",
        "student",
        "amount",
        "currency",
        "provider",
        "status",
        "created_at",
    )
    list_filter = ("status", "provider", "currency", "created_at")
    search_fields = ("transaction_id", "gateway_reference", "student__username", "course__title")
    list_select_related = ("course", "student")
    inlines = [BankTransferInline]
    readonly_fields = (
        "id",
        "transaction_id",
        "course",
        "student",
        "amount",
        "currency",
        "provider",
        "gateway_reference",
        "status",
        "notes",
        "paid_at",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        return False


@admin.register(BankTransferPayment)
class BankTransferPaymentAdmin(admin.ModelAdmin):
    list_display = (
        "reference_number",
        "payment",
        "bank_name",
        "account_holder",
        "status",
        "transfer_date",
        "verified_at",
    )
    list_filter = ("status", "bank_name")
    search_fields = ("reference_number", "account_holder", "payment__transaction_id")
    list_select_related = ("payment",)
    readonly_fields = ("payment", "status", "created_at", "verified_at")
    actions = ["verify_transfers", "reject_transfers"]

    def _verify(self, request: HttpRequest, queryset: QuerySet, is_verified: bool) -> None:
        service = BankTransferService()
        done = 0
        for bank_transfer in queryset.select_related("payment"):
            try:
                service.verify_bank_transfer(
                    bank_transfer.payment.transaction_id,
                    is_verified,
                    notes=f"{'Verified' if is_verified else 'Rejected'} in admin by {request.user}.",
                )
                done += 1
            except PaymentError as exc:
                self.message_user(request, f"{bank_transfer}: {exc.message}", level=messages.WARNING)
        if done:
            self.message_user(request, _("%d bank transfer(s) updated.") % done)

    @admin.action(description=_("Verify selected bank transfers"))
    def verify_transfers(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._verify(request, queryset, True)

    @admin.action(description=_("Reject selected bank transfers"))
    def reject_transfers(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._verify(request, queryset, False)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "payment", "issue_date")
    search_fields = ("invoice_number", "payment__transaction_id")
    readonly_fields = ("id", "payment", "invoice_number", "issue_date", "file_path", "created_at")


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "processed", "received_at")
    list_filter = ("event_type", "processed")
    search_fields = ("event_id",)
    readonly_fields = ("event_id", "event_type", "payload", "processed", "error_message", "received_at")
