"""
API views of the payments app, grouped by flow.
"""

from .bank_transfer_views import (
    BankTransferConfirmView,
    BankTransferInitiateView,
    BankTransferStatusView,
    BankTransferVerifyView,
)
from .invoice_views import GenerateInvoiceView, InvoiceDownloadView
from .payment_views import (
    ConfirmPaymentView,
    GetPaymentConfigView,
    InitiatePaymentView,
    PaymentHistoryDetailView,
    PaymentHistoryListView,
    PaymentStatusView,
)
from .webhook_views import PaymentWebhookView

__all__ = [
    "BankTransferConfirmView",
    "BankTransferInitiateView",
    "BankTransferStatusView",
    "BankTransferVerifyView",
    "ConfirmPaymentView",
    "GenerateInvoiceView",
    "GetPaymentConfigView",
    "InitiatePaymentView",
    "InvoiceDownloadView",
    "PaymentHistoryDetailView",
    "PaymentHistoryListView",
    "PaymentStatusView",
    "PaymentWebhookView",
]
