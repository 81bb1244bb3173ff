# imports/api/serializers.py

from rest_framework import serializers

from imports.models import ImportContainer, ImportRequirement
from imports.services.cost_allocation import ALLOCATION_BASES


class ImportContainerSerializer(serializers.ModelSerializer):
    batch_count = serializers.IntegerField(source="batches.count", read_only=True)

    class Meta:
        model = ImportContainer
        fields = "__all__"
        read_only_fields = ("id", "total_import_expenses", "allocated_at", "created_at", "updated_at")


class AllocationRowSerializer(serializers.Serializer):
    batch_id = serializers.IntegerField()
    batch_number = serializers.CharField()
    import_cost_allocated = serializers.DecimalField(max_digits=18, decimal_places=2)
    final_landed_cost = serializers.DecimalField(max_digits=18, decimal_places=2)
    landed_cost_per_unit = serializers.DecimalField(max_digits=18, decimal_places=4)


class AllocateInputSerializer(serializers.Serializer):
    basis = serializers.ChoiceField(choices=ALLOCATION_BASES, required=False)


class ImportRequirementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    order_number = serializers.CharField(source="sales_order.order_number", read_only=True, default=None)

    class Meta:
        model = ImportRequirement
        fields = (
            "id",
            "product",
            "product_name",
            "sales_order",
            "order_number",
            "required_quantity",
            "shortage_quantity",
            "status",
            "notes",
            "created_at",
        )
        read_only_fields = (
            "id",
            "product",
            "sales_order",
            "required_quantity",
            "shortage_quantity",
            "created_at",
        )
