from django.urls import path
from .views import (
    BankTransferConfirmView,
    BankTransferInitiateView,
    BankTransferStatusView,
    BankTransferVerifyView,
    ConfirmPaymentView,
    GenerateInvoiceView,
    GetPaymentConfigView,
    InitiatePaymentView,
    InvoiceDownloadView,
    PaymentHistoryDetailView,
    PaymentHistoryListView,
    PaymentStatusView,
    PaymentWebhookView,
)

app_name = "payments"

urlpatterns = [
    # Payments
    path("payments/config/", GetPaymentConfigView.as_view(), name="payment-config"),
    path("payments/initiate/", InitiatePaymentView.as_view(), name="payment-initiate"),
    path("payments/confirm/", ConfirmPaymentView.as_view(), name="payment-confirm"),
    path(
        "payments/status/<str:transaction_id>/",
        PaymentStatusView.as_view(),
        name="payment-status",
    ),
    path("payments/history/", PaymentHistoryListView.as_view(), name="payment-history"),
    path(
        "payments/history/<uuid:pk>/",
        PaymentHistoryDetailView.as_view(),
        name="payment-history-detail",
    ),
    # Bank transfer
    path("banktransfer/initiate/", BankTransferInitiateView.as_view(), name="banktransfer-initiate"),
    path("banktransfer/confirm/", BankTransferConfirmView.as_view(), name="banktransfer-confirm"),
    path(
        "banktransfer/verify/<str:transaction_id>/",
        BankTransferVerifyView.as_view(),
        name="banktransfer-verify",
    ),
    path(
        "banktransfer/status/<str:transaction_id>/",
        BankTransferStatusView.as_view(),
        name="banktransfer-status",
    ),
    # Webhooks
    path("webhooks/payment/", PaymentWebhookView.as_view(), name="payment-webhook"),
    # Invoices
    path(
        "invoices/generate/<uuid:payment_id>/",
        GenerateInvoiceView.as_view(),
        name="invoice-generate",
    ),
    path("invoices/<uuid:invoice_id>/", InvoiceDownloadView.as_view(), name="invoice-download"),
]
