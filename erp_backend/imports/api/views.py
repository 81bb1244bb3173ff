# imports/api/views.py

"""
PATH: imports/api/views.py

IMPORTS API

- /containers/                 CRUD; cost edits re-allocate automatically
- /containers/<id>/allocate/   POST {"basis": "value"|"quantity"} explicit re-run
- /requirements/               shortage-driven procurement tasks (status is editable)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated
from rest_framework.response import Response

from accounting.api.mixins import ModelCleanMixin
from imports.api.serializers import (
    AllocateInputSerializer,
    AllocationRowSerializer,
    ImportContainerSerializer,
    ImportRequirementSerializer,
)
from imports.models import ImportContainer, ImportRequirement
from imports.services.cost_allocation import AllocationError, allocate_container_costs


@extend_schema(tags=["imports"])
class ImportContainerViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = ImportContainerSerializer
    queryset = ImportContainer.objects.select_related("supplier").order_by("-created_at")
    filterset_fields = ("status", "supplier", "container_number")

    @extend_schema(request=AllocateInputSerializer, responses=AllocationRowSerializer(many=True))
    @action(detail=True, methods=["post"], url_path="allocate")
    def allocate(self, request, pk=None):
        if not request.user.has_perm("imports.change_importcontainer"):
            return Response(
                {"detail": "You do not have permission to allocate import costs."},
                status=status.HTTP_403_FORBIDDEN,
            )

        s = AllocateInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        container = self.get_object()
        try:
            rows = allocate_container_costs(container, basis=s.validated_data.get("basis"))
        except AllocationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(AllocationRowSerializer(rows, many=True).data, status=status.HTTP_200_OK)


@extend_schema(tags=["imports"])
class ImportRequirementViewSet(
    ModelCleanMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = ImportRequirementSerializer
    queryset = ImportRequirement.objects.select_related("product", "sales_order")
    filterset_fields = ("status", "product", "sales_order")
