"""
Bank Transfer Service

Manual payment flow for students paying by bank transfer:

1. ``create_bank_transfer_details``: a Pending payment plus the transfer
   record with a fresh reference number (``BT-<year>-<5 chars>``)
2. ``confirm_bank_transfer``: the student submits the transfer evidence
3. ``verify_bank_transfer``: an admin verifies or rejects the transfer;
   a verified transfer settles the payment and enrolls the student

Verified and Rejected are final.

Author: EduPlatform Development Team
Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone

from courses.models import Course
from ..exceptions import AlreadyPurchased, InvalidStateTransition, NotFound
from ..models import BankTransferPayment, Payment, PaymentStatus, generate_reference_number
from .payment_service import PaymentService

logger = logging.getLogger(__name__)


class BankTransferService(PaymentService):
    """Bank transfer variant of the payment service."""

    def create_bank_transfer_details(
        self,
        course_id: Any,
        amount: Any,
        currency: str,
        bank_name: str,
        account_number: str,
        account_holder: str,
        student=None,
    ) -> BankTransferPayment:
        with transaction.atomic():
            initiated = self.initiate_payment(
                course_id, amount, currency, Payment.Provider.BANK_TRANSFER, student=student
            )
            bank_transfer = BankTransferPayment.objects.create(
                payment=initiated.payment,
                bank_name=bank_name,
                account_number=account_number,
                account_holder=account_holder,
                reference_number=generate_reference_number(),
            )

        logger.info(
            "Bank transfer %s created for payment %s.",
            bank_transfer.reference_number,
            initiated.transaction_id,
        )
        return bank_transfer

    def get_bank_transfer(self, transaction_id: str) -> BankTransferPayment:
        bank_transfer = (
            BankTransferPayment.objects.select_related("payment", "payment__course")
            .filter(payment__transaction_id=transaction_id)
            .first()
        )
        if bank_transfer is None:
            raise NotFound("Bank transfer payment not found.")
        return bank_transfer

    def confirm_bank_transfer(
        self,
        transaction_id: str,
        reference_number: str,
        transfer_date: Optional[datetime] = None,
        receipt_image_url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BankTransferPayment:
        """
        Record the transfer evidence submitted by the student.

        The reference number is overwritten with the one the student used
        on the transfer. The transfer stays Pending until an admin verifies it.
        """
        bank_transfer = self.get_bank_transfer(transaction_id)
        if bank_transfer.is_terminal:
            raise InvalidStateTransition(
                f"Bank transfer is already {bank_transfer.status.lower()}."
            )

        bank_transfer.reference_number = reference_number
        bank_transfer.transfer_date = transfer_date
        bank_transfer.receipt_image_url = receipt_image_url
        bank_transfer.verification_notes = notes or ""
        bank_transfer.save(
            update_fields=[
                "reference_number",
                "transfer_date",
                "receipt_image_url",
                "verification_notes",
            ]
        )
        logger.info(
            "Bank transfer evidence received for payment %s (ref=%s).",
            transaction_id,
            reference_number,
        )
        return bank_transfer

    def verify_bank_transfer(
        self, transaction_id: str, is_verified: bool, notes: Optional[str] = None
    ) -> BankTransferPayment:
        """
        Verify (or reject) a pending transfer.

        Verification moves the payment to Succeeded and enrolls the
        student. Rejection leaves the payment status untouched.

        Raises:
            NotFound: No transfer for the transaction
            InvalidStateTransition: Transfer already verified or rejected
            AlreadyPurchased: Another payment already settled the course for the student
        """
        with transaction.atomic():
            bank_transfer = (
                BankTransferPayment.objects.select_for_update()
                .select_related("payment")
                .filter(payment__transaction_id=transaction_id)
                .first()
            )
            if bank_transfer is None:
                raise NotFound("Bank transfer payment not found.")
            if bank_transfer.is_terminal:
                raise InvalidStateTransition(
                    f"Bank transfer is already {bank_transfer.status.lower()}."
                )

            payment = bank_transfer.payment
            if is_verified and payment.student_id is not None:
                # Serializes settlement of the same course
                Course.objects.select_for_update().get(pk=payment.course_id)
                if self.is_course_already_purchased(
                    payment.course_id, payment.student_id, exclude_payment_id=payment.pk
                ):
                    raise AlreadyPurchased(
                        "The student has already purchased this course.",
                        details={"transactionId": transaction_id},
                    )

            bank_transfer.status = (
                BankTransferPayment.Status.VERIFIED
                if is_verified
                else BankTransferPayment.Status.REJECTED
            )
            if notes is not None:
                bank_transfer.verification_notes = notes
            bank_transfer.verified_at = timezone.now()
            bank_transfer.save(update_fields=["status", "verification_notes", "verified_at"])

            if is_verified:
                bank_transfer.payment = self.apply_status(
                    bank_transfer.payment,
                    PaymentStatus.SUCCEEDED,
                    note=f"Bank transfer {bank_transfer.reference_number} verified.",
                )

        logger.info(
            "Bank transfer %s %s.", bank_transfer.reference_number, bank_transfer.status.lower()
        )
        return bank_transfer
