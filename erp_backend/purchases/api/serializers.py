# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = "__all__"
        read_only_fields = ("id", "created_at")


class PurchaseInvoiceItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True, default=None)

    class Meta:
        model = PurchaseInvoiceItem
        fields = (
            "id",
            "invoice",
            "item_type",
            "product",
            "product_name",
            "batch",
            "description",
            "expense_category",
            "asset_account",
            "expense_account",
            "quantity",
            "unit_price",
            "line_total",
            "created_at",
        )
        read_only_fields = ("id", "line_total", "created_at")


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = PurchaseInvoiceItemSerializer(many=True, read_only=True)
    items_total = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)
    is_complete = serializers.BooleanField(read_only=True)
    ledger_reference = serializers.CharField(read_only=True)

    class Meta:
        model = PurchaseInvoice
        fields = (
            "id",
            "supplier",
            "supplier_name",
            "import_container",
            "invoice_number",
            "invoice_date",
            "due_date",
            "status",
            "tax_amount",
            "total_amount",
            "items_total",
            "is_complete",
            "ledger_reference",
            "journal_entry",
            "items",
            "created_by",
            "created_at",
        )
        read_only_fields = ("id", "journal_entry", "created_by", "created_at")
