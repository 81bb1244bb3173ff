# purchases/api/views.py

"""
PURCHASES API

Header and lines are separate resources; the ledger entry appears once the
invoice is postable and items + tax equal the entered total, whichever is
saved last.
"""

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated

from accounting.api.mixins import ModelCleanMixin
from purchases.api.serializers import (
    PurchaseInvoiceItemSerializer,
    PurchaseInvoiceSerializer,
    SupplierSerializer,
)
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, Supplier


@extend_schema(tags=["purchases"])
class SupplierViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = SupplierSerializer
    queryset = Supplier.objects.all().order_by("name")
    filterset_fields = ("is_active", "country")


@extend_schema(tags=["purchases"])
class PurchaseInvoiceViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = PurchaseInvoiceSerializer
    queryset = PurchaseInvoice.objects.select_related("supplier").prefetch_related("items__product")
    filterset_fields = ("status", "supplier", "import_container", "invoice_date")
    stamp_created_by = True


@extend_schema(tags=["purchases"])
class PurchaseInvoiceItemViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = PurchaseInvoiceItemSerializer
    queryset = PurchaseInvoiceItem.objects.select_related("product").order_by("created_at", "id")
    filterset_fields = ("invoice", "item_type")
