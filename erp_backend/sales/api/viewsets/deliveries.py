# sales/api/viewsets/deliveries.py

"""
======================================================
PATH: sales/api/viewsets/deliveries.py
======================================================
DELIVERY CHALLAN VIEWSET

- POST   /delivery-challans/               create draft + lines (releases reservations)
- POST   /delivery-challans/<id>/approve/  deduct stock exactly once
- DELETE /delivery-challans/<id>/          full undo (stock back, reservations restored)

Insufficient free stock at approval is a 409 conflict; nothing is deducted.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from inventory.services.exceptions import InsufficientStockError, InventoryError
from sales.api.serializers import DeliveryChallanCreateSerializer, DeliveryChallanSerializer
from sales.models import DeliveryChallan
from sales.services.delivery_service import (
    approve_delivery_challan,
    create_delivery_challan,
    delete_delivery_challan,
)
from sales.services.exceptions import SalesWorkflowError


@extend_schema(tags=["sales"])
class DeliveryChallanViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = DeliveryChallanSerializer
    queryset = DeliveryChallan.objects.select_related("customer", "sales_order").prefetch_related(
        "items__batch"
    )
    filterset_fields = ("status", "customer", "sales_order")

    def _username(self) -> str:
        return getattr(self.request.user, "username", "") or ""

    @extend_schema(request=DeliveryChallanCreateSerializer, responses={201: DeliveryChallanSerializer})
    def create(self, request, *args, **kwargs):
        s = DeliveryChallanCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            challan = create_delivery_challan(
                customer=data["customer"],
                items=data["items"],
                sales_order=data.get("sales_order"),
                challan_date=data.get("challan_date"),
                notes=data.get("notes", ""),
                created_by=self._username(),
            )
        except (SalesWorkflowError, InventoryError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        challan = self.get_queryset().get(pk=challan.pk)
        return Response(DeliveryChallanSerializer(challan).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses=DeliveryChallanSerializer)
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        if not request.user.has_perm("sales.change_deliverychallan"):
            return Response(
                {"detail": "You do not have permission to approve delivery challans."},
                status=status.HTTP_403_FORBIDDEN,
            )

        challan = self.get_object()
        try:
            challan = approve_delivery_challan(challan, created_by=self._username())
        except InsufficientStockError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except SalesWorkflowError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        challan = self.get_queryset().get(pk=challan.pk)
        return Response(DeliveryChallanSerializer(challan).data, status=status.HTTP_200_OK)

    def perform_destroy(self, instance):
        delete_delivery_challan(instance, created_by=self._username())
