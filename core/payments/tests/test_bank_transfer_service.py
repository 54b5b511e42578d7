import re
from datetime import datetime, timezone as dt_timezone

from django.test import TestCase

from courses.models import Enrollment
from core.payments.exceptions import AlreadyPurchased, InvalidStateTransition, NotFound
from core.payments.models import BankTransferPayment, Payment, PaymentStatus
from core.payments.services import BankTransferService

from .helpers import create_course, create_student

REFERENCE_PATTERN = re.compile(r"^BT-\d{4}-[A-Z0-9]{5}$")


class BankTransferServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = create_student()
        cls.course = create_course()

    def setUp(self):
        self.service = BankTransferService()

    def _create(self):
        return self.service.create_bank_transfer_details(
            self.course.pk,
            "49.99",
            "USD",
            "Acme Bank",
            "DE89370400440532013000",
            "EduPlatform GmbH",
            student=self.student,
        )

    def test_create_generates_reference_and_pending_payment(self):
        bank_transfer = self._create()

        self.assertRegex(bank_transfer.reference_number, REFERENCE_PATTERN)
        self.assertEqual(bank_transfer.status, BankTransferPayment.Status.PENDING)
        self.assertEqual(bank_transfer.payment.status, PaymentStatus.PENDING)
        self.assertEqual(bank_transfer.payment.provider, "BankTransfer")
        self.assertEqual(bank_transfer.payment.student, self.student)

    def test_confirm_records_evidence_and_stays_pending(self):
        bank_transfer = self._create()
        transfer_date = datetime(2025, 3, 1, 10, 30, tzinfo=dt_timezone.utc)

        confirmed = self.service.confirm_bank_transfer(
            bank_transfer.payment.transaction_id,
            "REF1",
            transfer_date=transfer_date,
            receipt_image_url="https://files.example.com/receipt.png",
            notes="Paid from savings account",
        )

        self.assertEqual(confirmed.reference_number, "REF1")
        self.assertEqual(confirmed.transfer_date, transfer_date)
        self.assertEqual(confirmed.status, BankTransferPayment.Status.PENDING)
        confirmed.payment.refresh_from_db()
        self.assertEqual(confirmed.payment.status, PaymentStatus.PENDING)

    def test_confirm_unknown_transaction(self):
        with self.assertRaises(NotFound):
            self.service.confirm_bank_transfer("missing", "REF1")

    def test_verify_settles_payment_and_enrolls(self):
        bank_transfer = self._create()

        verified = self.service.verify_bank_transfer(
            bank_transfer.payment.transaction_id, True, notes="Found on statement"
        )

        self.assertEqual(verified.status, BankTransferPayment.Status.VERIFIED)
        self.assertIsNotNone(verified.verified_at)
        self.assertEqual(verified.verification_notes, "Found on statement")
        self.assertEqual(verified.payment.status, PaymentStatus.SUCCEEDED)
        self.assertTrue(
            Enrollment.objects.filter(course=self.course, student=self.student).exists()
        )

    def test_reject_leaves_payment_pending(self):
        bank_transfer = self._create()

        rejected = self.service.verify_bank_transfer(
            bank_transfer.payment.transaction_id, False, notes="No matching transfer"
        )

        self.assertEqual(rejected.status, BankTransferPayment.Status.REJECTED)
        self.assertIsNotNone(rejected.verified_at)
        rejected.payment.refresh_from_db()
        self.assertEqual(rejected.payment.status, PaymentStatus.PENDING)
        self.assertFalse(Enrollment.objects.exists())

    def test_final_transfer_cannot_be_changed(self):
        bank_transfer = self._create()
        transaction_id = bank_transfer.payment.transaction_id
        self.service.verify_bank_transfer(transaction_id, False)

        with self.assertRaises(InvalidStateTransition):
            self.service.verify_bank_transfer(transaction_id, True)
        with self.assertRaises(InvalidStateTransition):
            self.service.confirm_bank_transfer(transaction_id, "REF2")

    def test_verify_unknown_transaction(self):
        with self.assertRaises(NotFound):
            self.service.verify_bank_transfer("missing", True)

    def test_full_bank_transfer_flow(self):
        bank_transfer = self._create()
        transaction_id = bank_transfer.payment.transaction_id

        self.service.confirm_bank_transfer(transaction_id, "REF1")
        self.service.verify_bank_transfer(transaction_id, True)

        bank_transfer = self.service.get_bank_transfer(transaction_id)
        self.assertEqual(bank_transfer.reference_number, "REF1")
        self.assertEqual(bank_transfer.status, BankTransferPayment.Status.VERIFIED)
        self.assertEqual(bank_transfer.payment.status, PaymentStatus.SUCCEEDED)
        self.assertEqual(
            Enrollment.objects.filter(course=self.course, student=self.student).count(), 1
        )

    def test_second_transfer_for_same_course_cannot_be_verified(self):
        first = self._create()
        second = self._create()
        self.service.verify_bank_transfer(first.payment.transaction_id, True)

        with self.assertRaises(AlreadyPurchased):
            self.service.verify_bank_transfer(second.payment.transaction_id, True)

        second.refresh_from_db()
        self.assertEqual(second.status, BankTransferPayment.Status.PENDING)
        self.assertEqual(
            Payment.objects.filter(
                course=self.course, student=self.student, status=PaymentStatus.SUCCEEDED
            ).count(),
            1,
        )

        # the duplicate can still be rejected
        rejected = self.service.verify_bank_transfer(second.payment.transaction_id, False)
        self.assertEqual(rejected.status, BankTransferPayment.Status.REJECTED)

    def test_logs_under_own_module(self):
        with self.assertLogs("core.payments.services.bank_transfer_service", level="INFO") as logs:
            bank_transfer = self._create()

        self.assertIn(bank_transfer.reference_number, "\n".join(logs.output))
