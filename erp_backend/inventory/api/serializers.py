# inventory/api/serializers.py

from rest_framework import serializers

from inventory.models import Batch, InventoryTransaction, Product, StockReservation


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = (
            "id",
            "sku",
            "name",
            "unit",
            "selling_price",
            "current_stock",
            "low_stock_threshold",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("id", "current_stock", "created_at", "updated_at")


class BatchSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    free_stock = serializers.IntegerField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Batch
        fields = (
            "id",
            "product",
            "product_name",
            "batch_number",
            "manufacturing_date",
            "expiry_date",
            "import_container",
            "import_price",
            "import_quantity",
            "import_price_per_unit",
            "current_stock",
            "reserved_stock",
            "free_stock",
            "import_cost_allocated",
            "final_landed_cost",
            "landed_cost_per_unit",
            "is_expired",
            "is_active",
            "created_at",
        )
        read_only_fields = (
            "id",
            "reserved_stock",
            "import_cost_allocated",
            "final_landed_cost",
            "landed_cost_per_unit",
            "created_at",
        )

    def validate(self, attrs):
        # physical stock moves only through delivery challans after creation
        if self.instance is not None and "current_stock" in attrs:
            if attrs["current_stock"] != self.instance.current_stock:
                raise serializers.ValidationError(
                    {"current_stock": "current_stock changes only through delivery challans"}
                )
        return attrs


class StockReservationSerializer(serializers.ModelSerializer):
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True)

    class Meta:
        model = StockReservation
        fields = (
            "id",
            "sales_order",
            "sales_order_item",
            "product",
            "batch",
            "batch_number",
            "reserved_quantity",
            "status",
            "created_at",
            "released_at",
        )
        read_only_fields = fields


class InventoryTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryTransaction
        fields = (
            "id",
            "product",
            "batch",
            "transaction_type",
            "quantity",
            "reference_type",
            "reference_id",
            "notes",
            "created_by",
            "created_at",
        )
        read_only_fields = fields
