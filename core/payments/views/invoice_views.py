"""
Invoice Views

- POST /api/invoices/generate/<paymentId>/  → {invoiceId, invoiceNumber, ...}
- GET  /api/invoices/<invoiceId>/           → application/pdf download
"""

from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsOwnerOrAdmin
from ..exceptions import NotFound
from ..models import Payment
from ..serializers import InvoiceSerializer
from ..services import InvoiceService


class GenerateInvoiceView(APIView):
    permission_classes = [IsOwnerOrAdmin]

    def post(self, request, payment_id):
        payment = Payment.objects.filter(pk=payment_id).first()
        if payment is None:
            raise NotFound("Payment not found.")
        self.check_object_permissions(request, payment)

        invoice = InvoiceService().generate_invoice(payment.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_200_OK)


class InvoiceDownloadView(APIView):
    permission_classes = [IsOwnerOrAdmin]
    owner_attribute = "payment.student_id"

    def get(self, request, invoice_id):
        service = InvoiceService()
        invoice = service.get_invoice(invoice_id)
        self.check_object_permissions(request, invoice)

        response = HttpResponse(service.get_invoice_pdf(invoice.pk), content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="invoice_{invoice.pk}.pdf"'
        return response
