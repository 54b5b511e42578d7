"""
Payments Package - EduPlatform
=============================================================

Everything needed to sell courses: payment records, the Stripe gateway
adapter, the bank transfer flow, webhook processing and PDF invoices.

Structure
---------
- apps.py         → App configuration (`PaymentsConfig`, label "payments")
- models.py       → Payment, BankTransferPayment, Invoice, WebhookEvent
- gateway.py      → Stripe adapter (PaymentIntents, webhook signatures)
- exceptions.py   → Error hierarchy + DRF exception handler
- services/       → Business logic (payments, bank transfer, webhooks, invoices)
- views/          → API endpoints
- urls.py         → Routes, mounted under /api/

Design Rationale
----------------
- Core placement: Located in `core/payments` so that billing is not tied
  to one product domain.
- One writer: every payment status change goes through
  `PaymentService.apply_status`, whether triggered by the client, an admin
  or a Stripe webhook.

Author: EduPlatform Development Team
Date: 2025-09-03
"""
