"""
Invoice Service

Renders PDF invoices for succeeded payments with reportlab and stores them
on disk below ``settings.INVOICE_STORAGE_PATH``:

    <INVOICE_STORAGE_PATH>/<payment id>/<invoice number>.pdf

Invoice numbers follow ``INV-<yyyyMMdd>-<first 8 characters of the
payment id>``. A payment has at most one invoice; generating again
re-renders the PDF, updates the existing record and removes a
superseded file.

Author: EduPlatform Development Team
Version: 1.0.0
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from ..exceptions import NotFound, PaymentValidationError
from ..models import Invoice, Payment, PaymentStatus

logger = logging.getLogger(__name__)


def _as_uuid(value: Any, what: str) -> uuid.UUID:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        raise NotFound(f"{what} not found.")


def _draw_page_number(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 9)
    canvas.drawCentredString(A4[0] / 2, 12 * mm, f"Page {doc.page}")
    canvas.restoreState()


class InvoiceService:
    def __init__(self, storage_path: Optional[Union[str, Path]] = None):
        self.storage_path = Path(storage_path or settings.INVOICE_STORAGE_PATH)

    @staticmethod
    def build_invoice_number(payment_id: Any, issued_at: datetime) -> str:
        return f"INV-{issued_at:%Y%m%d}-{str(payment_id)[:8]}"

    def generate_invoice(self, payment_id: Any) -> Invoice:
        """
        Issue (or re-issue) the invoice of a payment.

        Raises:
            NotFound: Payment does not exist
            PaymentValidationError: Payment has not succeeded
        """
        payment = (
            Payment.objects.select_related("course", "student")
            .filter(pk=_as_uuid(payment_id, "Payment"))
            .first()
        )
        if payment is None:
            raise NotFound("Payment not found.")
        if payment.status != PaymentStatus.SUCCEEDED:
            raise PaymentValidationError(
                "Invoices can only be generated for succeeded payments.",
                details={"status": payment.status},
            )

        issued_at = timezone.now()
        invoice_number = self.build_invoice_number(payment.pk, issued_at)

        directory = self.storage_path / str(payment.pk)
        directory.mkdir(parents=True, exist_ok=True)
        file_path = directory / f"{invoice_number}.pdf"
        self._render_pdf(file_path, invoice_number, issued_at, payment)

        previous = (
            Invoice.objects.filter(payment=payment).values_list("file_path", flat=True).first()
        )

        invoice, created = Invoice.objects.update_or_create(
            payment=payment,
            defaults={
                "invoice_number": invoice_number,
                "issue_date": issued_at,
                "file_path": str(file_path),
            },
        )
        logger.info(
            "%s invoice %s for payment %s at %s.",
            "Generated" if created else "Regenerated",
            invoice_number,
            payment.transaction_id,
            file_path,
        )
        if previous and Path(previous) != file_path:
            Path(previous).unlink(missing_ok=True)
            logger.info("Removed superseded invoice file %s.", previous)
        return invoice

    def get_invoice(self, invoice_id: Any) -> Invoice:
        invoice = (
            Invoice.objects.select_related("payment")
            .filter(pk=_as_uuid(invoice_id, "Invoice"))
            .first()
        )
        if invoice is None:
            raise NotFound("Invoice not found.")
        return invoice

    def get_invoice_pdf(self, invoice_id: Any) -> bytes:
        invoice = self.get_invoice(invoice_id)
        path = Path(invoice.file_path)
        if not path.is_file():
            logger.error("Invoice file %s of invoice %s is missing.", path, invoice.pk)
            raise NotFound("Invoice file not found.")
        return path.read_bytes()

    def _render_pdf(
        self, file_path: Path, invoice_number: str, issued_at: datetime, payment: Payment
    ) -> None:
        styles = getSampleStyleSheet()
        body = ParagraphStyle("InvoiceBody", parent=styles["Normal"], fontSize=12, leading=18)

        student = payment.student
        student_name = (
            (student.get_full_name() or student.get_username()) if student else "-"
        )

        lines = [
            ("Invoice Number", invoice_number),
            ("Date", f"{issued_at:%Y-%m-%d}"),
            ("Student", student_name),
            ("Course", payment.course.title),
            ("Amount", f"{payment.amount:.2f} {payment.currency}"),
        ]

        story = [Paragraph("Invoice", styles["Title"]), Spacer(1, 10 * mm)]
        for label, value in lines:
            story.append(Paragraph(f"<b>{label}:</b> {escape(str(value))}", body))

        doc = SimpleDocTemplate(
            str(file_path),
            pagesize=A4,
            leftMargin=20 * mm,
            rightMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=invoice_number,
        )
        doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
