"""
Payment Service for the EduPlatform course marketplace

Orchestrates course purchases:
- Creates payment records and Stripe PaymentIntents
- Confirms payments by re-reading the gateway status
- Applies status transitions and grants course access on success

All status changes go through ``apply_status``. It is shared by the
confirm endpoint, the bank transfer verification and the webhook
receiver, and locks the payment row so concurrent writers serialize.

Author: EduPlatform Development Team
Version: 1.0.0
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from courses.models import Course, Enrollment
from ..exceptions import AlreadyPurchased, GatewayError, NotFound, PaymentValidationError
from ..gateway import StripeGateway
from ..models import Payment, PaymentStatus, generate_transaction_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitiatedPayment:
    transaction_id: str
    payment: Payment
    client_secret: Optional[str] = None


class PaymentService:
    """
    Service for the payment workflow of course purchases.

    Args:
        gateway: Gateway adapter used for Stripe payments. Bank transfer
            payments work without one.

    Example:
        >>> service = PaymentService(gateway=StripeGateway.from_settings())
        >>> result = service.initiate_payment(course.id, "49.00", "USD", "Stripe", student=user)
        >>> result.client_secret  # handed to Stripe.js
    """

    def __init__(self, gateway: Optional[StripeGateway] = None):
        self.gateway = gateway

    # ---------- validation helpers ----------

    @staticmethod
    def _validate_amount(amount: Any) -> Decimal:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, TypeError, ValueError):
            raise PaymentValidationError("Amount must be a number.")
        if not value.is_finite() or value <= 0:
            raise PaymentValidationError("Amount must be greater than zero.")
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @staticmethod
    def _validate_currency(currency: Any) -> str:
        code = str(currency or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise PaymentValidationError("Currency must be a 3-letter ISO code.")
        if code not in settings.SUPPORTED_CURRENCIES:
            raise PaymentValidationError(
                f"Unsupported currency: {code}.",
                details={"supported": list(settings.SUPPORTED_CURRENCIES)},
            )
        return code

    @staticmethod
    def _get_course(course_id: Any) -> Course:
        try:
            return Course.objects.get(pk=course_id)
        except (Course.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound("Course not found.")

    @staticmethod
    def _get_student(student_id: Any):
        User = get_user_model()
        try:
            return User.objects.get(pk=student_id)
        except (User.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFound("Student not found.")

    def _require_gateway(self) -> StripeGateway:
        if self.gateway is None:
            raise GatewayError("No payment gateway configured.")
        return self.gateway

    # ---------- operations ----------

    def initiate_payment(
        self,
        course_id: Any,
        amount: Any,
        currency: str,
        provider: str,
        student=None,
    ) -> InitiatedPayment:
        """
        Start a payment for a course.

        The payment is stored as Pending. For Stripe a PaymentIntent is
        created and its client secret returned; when Stripe fails the
        payment is marked Failed and ``GatewayError`` raised.

        Raises:
            PaymentValidationError: Bad amount, currency, provider or unpublished
                course, or amount and currency differ from the course price
            NotFound: Course does not exist
            AlreadyPurchased: ``student`` already owns the course
            GatewayError: Stripe call failed
        """
        value = self._validate_amount(amount)
        code = self._validate_currency(currency)
        if provider not in Payment.Provider.values:
            raise PaymentValidationError(f"Unsupported payment provider: {provider}.")

        course = self._get_course(course_id)
        if not course.is_purchasable:
            raise PaymentValidationError("Course is not available for purchase.")
        if value != course.price or code != course.currency.upper():
            logger.warning(
                "Price mismatch for course %s: got %s %s, expected %s %s.",
                course.pk,
                value,
                code,
                course.price,
                course.currency,
            )
            raise PaymentValidationError(
                "Amount and currency must match the course price.",
                details={"expectedAmount": str(course.price), "expectedCurrency": course.currency},
            )
        if student is not None and self.is_course_already_purchased(course.pk, student.pk):
            raise AlreadyPurchased("You have already purchased this course.")

        gateway = self._require_gateway() if provider == Payment.Provider.STRIPE else None

        payment = Payment.objects.create(
            transaction_id=generate_transaction_id(),
            course=course,
            student=student,
            amount=value,
            currency=code,
            provider=provider,
            status=PaymentStatus.PENDING,
        )
        logger.info(
            "Initiated %s payment %s for course %s (%s %s).",
            provider,
            payment.transaction_id,
            course.pk,
            value,
            code,
        )

        if gateway is None:
            return InitiatedPayment(transaction_id=payment.transaction_id, payment=payment)

        try:
            intent = gateway.create_intent(
                value,
                code,
                metadata={
                    "transaction_id": payment.transaction_id,
                    "course_id": str(course.pk),
                    "student_id": str(student.pk) if student is not None else "",
                },
                description=course.title,
            )
        except GatewayError as exc:
            self.apply_status(payment, PaymentStatus.FAILED, note=f"Gateway error: {exc.message}")
            raise

        payment.gateway_reference = intent.id
        payment.save(update_fields=["gateway_reference", "updated_at"])
        return InitiatedPayment(
            transaction_id=payment.transaction_id,
            payment=payment,
            client_secret=intent.client_secret,
        )

    def confirm_payment(
        self,
        transaction_id: str,
        student_id: Any,
        status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Confirm a payment on behalf of a student.

        Binds the student to the payment if it has none. For Stripe the
        status is re-read from the gateway; the ``status`` sent by the
        client is only logged. Bank transfers are settled by verification,
        so for them this is a status poll.

        Raises:
            NotFound: Unknown transaction or student
            PaymentValidationError: Payment belongs to another student
            AlreadyPurchased: Another payment already settled the course for the student
            GatewayError: Stripe lookup failed
        """
        payment = self.get_payment_status(transaction_id)
        student = self._get_student(student_id)

        if payment.student_id is not None and payment.student_id != student.pk:
            raise PaymentValidationError("Payment belongs to a different student.")
        if payment.status != PaymentStatus.SUCCEEDED and self.is_course_already_purchased(
            payment.course_id, student.pk
        ):
            raise AlreadyPurchased("You have already purchased this course.")

        update_fields = []
        if payment.student_id is None:
            payment.student = student
            update_fields.append("student")
        if notes:
            payment.append_note(f"Client note: {notes}")
            update_fields.append("notes")
        if update_fields:
            payment.save(update_fields=update_fields + ["updated_at"])

        if status:
            logger.info(
                "Client reported status %s for payment %s (ignored).", status, transaction_id
            )

        if payment.provider == Payment.Provider.STRIPE and not payment.is_terminal:
            new_status = self._require_gateway().retrieve_status(payment.gateway_reference)
            payment = self.apply_status(payment, new_status, note="Confirmed by client.")
        elif payment.status == PaymentStatus.SUCCEEDED:
            # Settled before the student was bound (e.g. by webhook)
            with transaction.atomic():
                self._ensure_enrollment(payment)

        return payment

    def is_course_already_purchased(
        self, course_id: Any, student_id: Any, exclude_payment_id: Any = None
    ) -> bool:
        qs = Payment.objects.filter(
            course_id=course_id,
            student_id=student_id,
            status=PaymentStatus.SUCCEEDED,
        )
        if exclude_payment_id is not None:
            qs = qs.exclude(pk=exclude_payment_id)
        return qs.exists()

    def get_payment_status(self, transaction_id: str) -> Payment:
        payment = (
            Payment.objects.select_related("course", "student")
            .filter(transaction_id=transaction_id)
            .first()
        )
        if payment is None:
            raise NotFound("Payment not found.")
        return payment

    def find_by_gateway_reference(self, reference: str) -> Optional[Payment]:
        if not reference:
            return None
        return Payment.objects.filter(gateway_reference=reference).first()

    # ---------- state transitions ----------

    def apply_status(
        self,
        payment: Payment,
        new_status: str,
        note: Optional[str] = None,
        allow_from_failed: bool = False,
    ) -> Payment:
        """
        Move a payment to ``new_status``.

        No-op when the status is unchanged or the payment is already
        terminal. Entering Succeeded stamps ``paid_at`` and enrolls the
        student in the same transaction.

        ``allow_from_failed`` lets a Failed payment move to Succeeded. Only
        signature-verified gateway events pass it: a confirm during a 3-D
        Secure step reads the intent as Failed, and the charge can still
        succeed afterwards.

        Returns:
            The refreshed payment
        """
        with transaction.atomic():
            locked = (
                Payment.objects.select_for_update()
                .select_related("course")
                .get(pk=payment.pk)
            )

            if locked.status == new_status:
                if new_status == PaymentStatus.SUCCEEDED:
                    self._ensure_enrollment(locked)
                return locked

            reopen = (
                allow_from_failed
                and locked.status == PaymentStatus.FAILED
                and new_status == PaymentStatus.SUCCEEDED
            )
            if locked.is_terminal and not reopen:
                logger.warning(
                    "Ignoring transition %s -> %s of terminal payment %s.",
                    locked.status,
                    new_status,
                    locked.transaction_id,
                )
                return locked

            previous = locked.status
            locked.status = new_status
            update_fields = ["status", "updated_at"]
            if note:
                locked.append_note(note)
                update_fields.append("notes")
            if new_status == PaymentStatus.SUCCEEDED:
                locked.paid_at = timezone.now()
                update_fields.append("paid_at")
            locked.save(update_fields=update_fields)

            if new_status == PaymentStatus.SUCCEEDED:
                self._ensure_enrollment(locked)

        logger.info(
            "Payment %s: %s -> %s.", locked.transaction_id, previous, new_status
        )
        return locked

    def _ensure_enrollment(self, payment: Payment) -> Optional[Enrollment]:
        if payment.student_id is None:
            logger.info(
                "Payment %s succeeded without a student; enrollment deferred.",
                payment.transaction_id,
            )
            return None

        # get_or_create falls back to a lookup when the unique constraint fires
        enrollment, created = Enrollment.objects.get_or_create(
            course_id=payment.course_id,
            student_id=payment.student_id,
            defaults={"payment": payment},
        )
        if not created:
            logger.info(
                "Enrollment already exists for student %s and course %s.",
                payment.student_id,
                payment.course_id,
            )
        return enrollment
