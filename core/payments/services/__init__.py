"""
Payment Services Package

Business logic of the payment workflow:
- PaymentService: payment creation, confirmation and status transitions
- BankTransferService: manual bank transfer flow and admin verification
- WebhookService: verified Stripe webhook processing
- InvoiceService: PDF invoice generation and retrieval

Author: EduPlatform Development Team
Version: 1.0.0
"""

from .bank_transfer_service import BankTransferService
from .invoice_service import InvoiceService
from .payment_service import InitiatedPayment, PaymentService
from .webhook_service import WebhookService

__all__ = [
    "BankTransferService",
    "InitiatedPayment",
    "InvoiceService",
    "PaymentService",
    "WebhookService",
]
