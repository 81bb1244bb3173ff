# sales/api/viewsets/customers.py

from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.permissions import DjangoModelPermissions, IsAuthenticated

from accounting.api.mixins import ModelCleanMixin
from sales.api.serializers import CustomerSerializer
from sales.models import Customer


@extend_schema(tags=["sales"])
class CustomerViewSet(ModelCleanMixin, viewsets.ModelViewSet):
    permission_classes = [IsAuthenticated, DjangoModelPermissions]
    serializer_class = CustomerSerializer
    queryset = Customer.objects.all().order_by("name")
    filterset_fields = ("code", "is_active")
