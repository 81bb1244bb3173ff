# sales/api/viewsets/orders.py

"""
======================================================
PATH: sales/api/viewsets/orders.py
======================================================
SALES ORDER VIEWSET

- POST   /orders/                 create (draft)
- POST   /orders/<id>/approve/    draft -> reserve stock (FEFO/FIFO)
- POST   /orders/<id>/reserve/    re-run the reservation (e.g. after new stock)
- POST   /orders/<id>/cancel/     release everything, cancel requirements
- PUT    /orders/<id>/items/      replace lines (re-reserves an open order)

Workflow errors are 400 (bad state / bad input), never 500.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from inventory.services.exceptions import InventoryError
from sales.api.serializers import (
    ReservationResultSerializer,
    SalesOrderCreateSerializer,
    SalesOrderItemsUpdateSerializer,
    SalesOrderSerializer,
)
from sales.models import SalesOrder
from sales.services.exceptions import SalesWorkflowError
from sales.services.order_service import (
    approve_sales_order,
    cancel_sales_order,
    create_sales_order,
    rerun_reservation,
    update_sales_order_items,
)


def _workflow_error(exc) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=["sales"])
class SalesOrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = SalesOrderSerializer
    queryset = SalesOrder.objects.select_related("customer").prefetch_related("items__product")
    filterset_fields = ("status", "customer", "order_date")

    def _username(self) -> str:
        return getattr(self.request.user, "username", "") or ""

    def _fresh(self, pk):
        return self.get_queryset().get(pk=pk)

    @extend_schema(request=SalesOrderCreateSerializer, responses={201: SalesOrderSerializer})
    def create(self, request, *args, **kwargs):
        s = SalesOrderCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = create_sales_order(
                customer=data["customer"],
                items=data["items"],
                order_date=data.get("order_date"),
                notes=data.get("notes", ""),
                created_by=self._username(),
            )
        except SalesWorkflowError as exc:
            return _workflow_error(exc)

        return Response(SalesOrderSerializer(self._fresh(order.pk)).data, status=status.HTTP_201_CREATED)

    def _run(self, command):
        order = self.get_object()
        try:
            result = command(order, created_by=self._username())
        except (SalesWorkflowError, InventoryError) as exc:
            return _workflow_error(exc)
        return result

    @extend_schema(request=None, responses=ReservationResultSerializer)
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        result = self._run(approve_sales_order)
        if isinstance(result, Response):
            return result
        return Response(ReservationResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses=ReservationResultSerializer)
    @action(detail=True, methods=["post"], url_path="reserve")
    def reserve(self, request, pk=None):
        result = self._run(rerun_reservation)
        if isinstance(result, Response):
            return result
        return Response(ReservationResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses=SalesOrderSerializer)
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        result = self._run(cancel_sales_order)
        if isinstance(result, Response):
            return result
        return Response(SalesOrderSerializer(self._fresh(result.pk)).data, status=status.HTTP_200_OK)

    @extend_schema(request=SalesOrderItemsUpdateSerializer, responses=SalesOrderSerializer)
    @action(detail=True, methods=["put"], url_path="items")
    def items(self, request, pk=None):
        s = SalesOrderItemsUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        order = self.get_object()
        try:
            order = update_sales_order_items(
                order, s.validated_data["items"], created_by=self._username()
            )
        except (SalesWorkflowError, InventoryError) as exc:
            return _workflow_error(exc)

        return Response(SalesOrderSerializer(self._fresh(order.pk)).data, status=status.HTTP_200_OK)
