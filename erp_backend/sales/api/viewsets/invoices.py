# sales/api/viewsets/invoices.py

"""
SALES INVOICE VIEWSET

Totals are derived from the lines; the ledger entry follows the status
(posted while unpaid / partial / paid, removed when draft or cancelled).
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from sales.api.serializers import (
    InvoiceStatusSerializer,
    SalesInvoiceCreateSerializer,
    SalesInvoiceSerializer,
)
from sales.models import SalesInvoice
from sales.services.exceptions import SalesWorkflowError
from sales.services.invoice_service import create_sales_invoice, set_invoice_status


@extend_schema(tags=["sales"])
class SalesInvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = SalesInvoiceSerializer
    queryset = SalesInvoice.objects.select_related("customer").prefetch_related("items")
    filterset_fields = ("status", "customer", "invoice_date", "sales_order")

    @extend_schema(request=SalesInvoiceCreateSerializer, responses={201: SalesInvoiceSerializer})
    def create(self, request, *args, **kwargs):
        s = SalesInvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        try:
            invoice = create_sales_invoice(
                customer=data.pop("customer"),
                items=data.pop("items"),
                created_by=getattr(request.user, "username", "") or "",
                **data,
            )
        except SalesWorkflowError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=InvoiceStatusSerializer, responses=SalesInvoiceSerializer)
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        s = InvoiceStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        invoice = self.get_object()
        try:
            invoice = set_invoice_status(invoice, s.validated_data["status"])
        except SalesWorkflowError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data, status=status.HTTP_200_OK)
