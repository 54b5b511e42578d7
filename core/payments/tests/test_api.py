"""
Payment API Tests

End-to-end tests of the HTTP endpoints under /api/: request validation,
permissions, error rendering and the JSON shape of the responses.
"""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from courses.models import Enrollment
from core.payments.models import BankTransferPayment, Invoice, Payment, PaymentStatus

from .helpers import create_admin, create_course, create_student, fake_intent


class PaymentApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = create_student()
        cls.other = create_student("other")
        cls.course = create_course()

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(self.student)

    def test_config_is_public(self):
        anonymous = APIClient()
        response = anonymous.get("/api/payments/config/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("publishableKey", response.json())

    def test_initiate_requires_authentication(self):
        response = APIClient().post(
            "/api/payments/initiate/",
            {"courseId": str(self.course.pk), "amount": "49.99", "currency": "USD", "provider": "BankTransfer"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn("error", response.json())

    @patch("core.payments.gateway.stripe.PaymentIntent.create")
    def test_initiate_stripe_payment(self, create_intent):
        create_intent.return_value = fake_intent("pi_api")

        response = self.client.post(
            "/api/payments/initiate/",
            {"courseId": str(self.course.pk), "amount": "49.99", "currency": "USD", "provider": "Stripe"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.json()
        self.assertEqual(body["clientSecret"], "pi_api_secret_abc")
        payment = Payment.objects.get(transaction_id=body["transactionId"])
        self.assertEqual(payment.student, self.student)

    def test_initiate_validates_body(self):
        response = self.client.post(
            "/api/payments/initiate/",
            {"courseId": "not-a-uuid", "amount": "-1", "currency": "USD", "provider": "Cash"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertEqual(body["code"], "validation_error")
        self.assertIn("courseId", body["details"])
        self.assertIn("provider", body["details"])

    def test_initiate_for_owned_course_conflicts(self):
        Payment.objects.create(
            course=self.course,
            student=self.student,
            amount=10,
            currency="USD",
            provider=Payment.Provider.STRIPE,
            status=PaymentStatus.SUCCEEDED,
        )
        response = self.client.post(
            "/api/payments/initiate/",
            {"courseId": str(self.course.pk), "amount": "49.99", "currency": "USD", "provider": "BankTransfer"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()["code"], "already_purchased")

    @patch("core.payments.gateway.stripe.PaymentIntent.retrieve")
    def test_confirm_returns_payment(self, retrieve):
        retrieve.return_value = fake_intent("pi_confirm", status="succeeded")
        payment = Payment.objects.create(
            course=self.course,
            amount="49.99",
            currency="USD",
            provider=Payment.Provider.STRIPE,
            gateway_reference="pi_confirm",
        )

        response = self.client.post(
            "/api/payments/confirm/",
            {"transactionId": payment.transaction_id, "studentId": self.student.pk, "status": "succeeded"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["status"], "Succeeded")
        self.assertEqual(body["amount"], "49.99")
        self.assertEqual(body["studentId"], self.student.pk)
        self.assertTrue(Enrollment.objects.filter(student=self.student, course=self.course).exists())

    def test_confirm_for_other_student_is_forbidden(self):
        payment = Payment.objects.create(
            course=self.course, amount=10, currency="USD", provider=Payment.Provider.STRIPE
        )
        response = self.client.post(
            "/api/payments/confirm/",
            {"transactionId": payment.transaction_id, "studentId": self.other.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_confirm_unknown_transaction(self):
        response = self.client.post(
            "/api/payments/confirm/",
            {"transactionId": "missing", "studentId": self.student.pk},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["code"], "not_found")

    def test_status_of_own_payment(self):
        payment = Payment.objects.create(
            course=self.course,
            student=self.student,
            amount=10,
            currency="USD",
            provider=Payment.Provider.BANK_TRANSFER,
        )
        response = self.client.get(f"/api/payments/status/{payment.transaction_id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["transactionId"], payment.transaction_id)

    def test_status_of_foreign_payment_is_forbidden(self):
        payment = Payment.objects.create(
            course=self.course,
            student=self.other,
            amount=10,
            currency="USD",
            provider=Payment.Provider.BANK_TRANSFER,
        )
        response = self.client.get(f"/api/payments/status/{payment.transaction_id}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_status_unknown_transaction(self):
        response = self.client.get("/api/payments/status/missing/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PaymentHistoryApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = create_student()
        cls.other = create_student("other")
        cls.admin = create_admin()
        cls.course = create_course(title="Data Engineering")
        cls.paid = Payment.objects.create(
            course=cls.course,
            student=cls.student,
            amount="49.99",
            currency="USD",
            provider=Payment.Provider.STRIPE,
            gateway_reference="pi_history",
            status=PaymentStatus.SUCCEEDED,
        )
        cls.invoice = Invoice.objects.create(
            payment=cls.paid,
            invoice_number="INV-20250301-abcdef12",
            issue_date=timezone.now(),
            file_path="/tmp/INV-20250301-abcdef12.pdf",
        )
        cls.open = Payment.objects.create(
            course=cls.course,
            student=cls.student,
            amount="49.99",
            currency="USD",
            provider=Payment.Provider.BANK_TRANSFER,
        )
        cls.foreign = Payment.objects.create(
            course=cls.course,
            student=cls.other,
            amount="49.99",
            currency="USD",
            provider=Payment.Provider.STRIPE,
        )

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(self.student)

    def test_history_lists_own_payments_only(self):
        response = self.client.get("/api/payments/history/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual({row["id"] for row in body}, {str(self.paid.pk), str(self.open.pk)})
        paid = next(row for row in body if row["id"] == str(self.paid.pk))
        self.assertEqual(paid["courseTitle"], "Data Engineering")
        self.assertTrue(paid["isSuccessful"])
        self.assertEqual(paid["invoiceId"], str(self.invoice.pk))
        pending = next(row for row in body if row["id"] == str(self.open.pk))
        self.assertFalse(pending["isSuccessful"])
        self.assertIsNone(pending["invoiceId"])

    def test_history_requires_authentication(self):
        response = APIClient().get("/api/payments/history/")
        self.assertIn(
            response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
        )

    def test_history_detail(self):
        response = self.client.get(f"/api/payments/history/{self.paid.pk}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body["gatewayReference"], "pi_history")
        self.assertEqual(body["invoiceId"], str(self.invoice.pk))

    def test_history_detail_of_foreign_payment(self):
        response = self.client.get(f"/api/payments/history/{self.foreign.pk}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(f"/api/payments/history/{self.foreign.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_history_detail_unknown_payment(self):
        response = self.client.get("/api/payments/history/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class BankTransferApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = create_student()
        cls.admin = create_admin()
        cls.course = create_course()

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(self.student)

    def _initiate(self):
        response = self.client.post(
            "/api/banktransfer/initiate/",
            {
                "courseId": str(self.course.pk),
                "amount": "49.99",
                "currency": "USD",
                "bankName": "Acme Bank",
                "accountNumber": "DE89370400440532013000",
                "accountHolder": "EduPlatform GmbH",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.json()

    def test_bank_transfer_end_to_end(self):
        initiated = self._initiate()
        transaction_id = initiated["transactionId"]
        self.assertRegex(initiated["referenceNumber"], r"^BT-\d{4}-[A-Z0-9]{5}$")
        self.assertEqual(initiated["bankDetails"]["bankName"], "Acme Bank")

        response = self.client.post(
            "/api/banktransfer/confirm/",
            {"transactionId": transaction_id, "referenceNumber": "REF1", "transferDate": "2025-03-01T10:30:00Z"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["bankTransfer"]["status"], "Pending")

        # students cannot verify their own transfer
        response = self.client.post(
            f"/api/banktransfer/verify/{transaction_id}/", {"isVerified": True}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        admin_client = APIClient()
        admin_client.force_authenticate(self.admin)
        response = admin_client.post(
            f"/api/banktransfer/verify/{transaction_id}/",
            {"isVerified": True, "notes": "Matched statement"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(f"/api/banktransfer/status/{transaction_id}/")
        body = response.json()
        self.assertEqual(body["referenceNumber"], "REF1")
        self.assertEqual(body["status"], "Verified")
        self.assertEqual(body["payment"]["status"], "Succeeded")
        self.assertTrue(Enrollment.objects.filter(student=self.student, course=self.course).exists())

    def test_verify_twice_conflicts(self):
        transaction_id = self._initiate()["transactionId"]
        admin_client = APIClient()
        admin_client.force_authenticate(self.admin)

        admin_client.post(f"/api/banktransfer/verify/{transaction_id}/", {"isVerified": False}, format="json")
        response = admin_client.post(
            f"/api/banktransfer/verify/{transaction_id}/", {"isVerified": True}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(
            BankTransferPayment.objects.get().status, BankTransferPayment.Status.REJECTED
        )

    def test_confirm_unknown_transfer(self):
        response = self.client.post(
            "/api/banktransfer/confirm/",
            {"transactionId": "missing", "referenceNumber": "REF1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class InvoiceApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = create_student()
        cls.other = create_student("other")
        cls.course = create_course()

    def setUp(self):
        storage = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, storage, ignore_errors=True)
        settings_override = override_settings(INVOICE_STORAGE_PATH=Path(storage))
        settings_override.enable()
        self.addCleanup(settings_override.disable)

        self.client = APIClient()
        self.client.force_authenticate(self.student)
        self.payment = Payment.objects.create(
            course=self.course,
            student=self.student,
            amount="49.99",
            currency="USD",
            provider=Payment.Provider.STRIPE,
            status=PaymentStatus.SUCCEEDED,
        )

    def test_generate_and_download(self):
        response = self.client.post(f"/api/invoices/generate/{self.payment.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["invoiceNumber"].startswith("INV-"))

        response = self.client.get(f"/api/invoices/{body['invoiceId']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn(f"invoice_{body['invoiceId']}.pdf", response["Content-Disposition"])
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_foreign_invoice_is_forbidden(self):
        other_client = APIClient()
        other_client.force_authenticate(self.other)

        response = other_client.post(f"/api/invoices/generate/{self.payment.pk}/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_payment_is_rejected(self):
        self.payment.status = PaymentStatus.PENDING
        self.payment.save()

        response = self.client.post(f"/api/invoices/generate/{self.payment.pk}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_invoice(self):
        response = self.client.get("/api/invoices/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
