# inventory/api/views.py

"""
PATH: inventory/api/views.py

INVENTORY API

- /products/       CRUD (current_stock is derived, read-only)
- /batches/        CRUD; reserved_stock and landed-cost columns are read-only
- /reservations/   read-only reservation rows, plus /reservations/consistency/
- /transactions/   read-only movement log
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from accounting.api.mixins import ModelCleanMixin
from inventory.api.serializers import (
    BatchSerializer,
    InventoryTransactionSerializer,
    ProductSerializer,
    StockReservationSerializer,
)
from inventory.models import Batch, InventoryTransaction, Product, StockReservation
from inventory.services.stock_counters import check_reservation_consistency


@extend_schema(tags=["inventory"])
class ProductViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = ProductSerializer
    queryset = Product.objects.all().order_by("name")
    filterset_fields = ("sku", "is_active")


@extend_schema(tags=["inventory"])
class BatchViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = BatchSerializer
    queryset = Batch.objects.select_related("product")
    filterset_fields = ("product", "import_container", "is_active", "batch_number")


@extend_schema(tags=["inventory"])
class StockReservationViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = StockReservationSerializer
    queryset = StockReservation.objects.select_related("batch").order_by("created_at", "id")
    filterset_fields = ("sales_order", "product", "batch", "status")

    @extend_schema(responses={200: dict})
    @action(detail=False, methods=["get"], url_path="consistency")
    def consistency(self, request):
        problems = check_reservation_consistency()
        return Response(
            {"consistent": not problems, "problems": problems},
            status=status.HTTP_200_OK,
        )


@extend_schema(tags=["inventory"])
class InventoryTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = InventoryTransactionSerializer
    queryset = InventoryTransaction.objects.order_by("-created_at", "-id")
    filterset_fields = ("product", "batch", "transaction_type", "reference_type", "reference_id")
