# sales/api/serializers.py

"""
SALES API SERIALIZERS

Read serializers mirror the models; *Create serializers are command inputs
handed to sales.services (the services own numbering, stock and posting).
"""

from rest_framework import serializers

from inventory.models import Batch, Product
from sales.models import (
    Customer,
    DeliveryChallan,
    DeliveryChallanItem,
    SalesInvoice,
    SalesInvoiceItem,
    SalesOrder,
    SalesOrderItem,
)


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = "__all__"
        read_only_fields = ("id", "created_at")


# ============================================================
# ORDERS
# ============================================================


class SalesOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    line_total = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = SalesOrderItem
        fields = ("id", "product", "product_name", "quantity", "unit_price", "line_total")


class SalesOrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = SalesOrderItemSerializer(many=True, read_only=True)
    total_amount = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = SalesOrder
        fields = (
            "id",
            "order_number",
            "order_date",
            "customer",
            "customer_name",
            "status",
            "notes",
            "items",
            "total_amount",
            "approved_at",
            "cancelled_at",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class OrderLineInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.filter(is_active=True))
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)


class SalesOrderCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.filter(is_active=True))
    order_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = OrderLineInputSerializer(many=True, allow_empty=False)


class SalesOrderItemsUpdateSerializer(serializers.Serializer):
    items = OrderLineInputSerializer(many=True, allow_empty=False)


class ReservationResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    reserved = serializers.ListField(child=serializers.DictField())
    shortages = serializers.ListField(child=serializers.DictField())


# ============================================================
# DELIVERY CHALLANS
# ============================================================


class DeliveryChallanItemSerializer(serializers.ModelSerializer):
    batch_number = serializers.CharField(source="batch.batch_number", read_only=True)

    class Meta:
        model = DeliveryChallanItem
        fields = (
            "id",
            "product",
            "batch",
            "batch_number",
            "sales_order_item",
            "quantity",
            "released_quantity",
        )
        read_only_fields = fields


class DeliveryChallanSerializer(serializers.ModelSerializer):
    items = DeliveryChallanItemSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryChallan
        fields = (
            "id",
            "challan_number",
            "challan_date",
            "customer",
            "sales_order",
            "status",
            "approved_at",
            "notes",
            "items",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class DeliveryLineInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    batch = serializers.PrimaryKeyRelatedField(queryset=Batch.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    sales_order_item = serializers.PrimaryKeyRelatedField(
        queryset=SalesOrderItem.objects.all(), required=False, allow_null=True
    )

    def validate(self, attrs):
        if attrs["batch"].product_id != attrs["product"].pk:
            raise serializers.ValidationError({"batch": "Batch does not belong to product"})
        return attrs


class DeliveryChallanCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    sales_order = serializers.PrimaryKeyRelatedField(
        queryset=SalesOrder.objects.all(), required=False, allow_null=True
    )
    challan_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = DeliveryLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        order = attrs.get("sales_order")
        if order is not None and order.customer_id != attrs["customer"].pk:
            raise serializers.ValidationError({"sales_order": "sales order belongs to another customer"})
        return attrs


# ============================================================
# INVOICES
# ============================================================


class SalesInvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SalesInvoiceItem
        fields = ("id", "product", "batch", "quantity", "unit_price", "line_total")
        read_only_fields = fields


class SalesInvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = SalesInvoiceItemSerializer(many=True, read_only=True)

    class Meta:
        model = SalesInvoice
        fields = (
            "id",
            "invoice_number",
            "invoice_date",
            "due_date",
            "customer",
            "customer_name",
            "sales_order",
            "delivery_challan",
            "status",
            "subtotal_amount",
            "tax_amount",
            "total_amount",
            "journal_entry",
            "items",
            "created_by",
            "created_at",
        )
        read_only_fields = fields


class InvoiceLineInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    batch = serializers.PrimaryKeyRelatedField(queryset=Batch.objects.all(), required=False, allow_null=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0)


class SalesInvoiceCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    invoice_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=0, required=False)
    status = serializers.ChoiceField(
        choices=[c for c, _ in SalesInvoice.STATUS_CHOICES if c != SalesInvoice.STATUS_CANCELLED],
        default=SalesInvoice.STATUS_UNPAID,
    )
    sales_order = serializers.PrimaryKeyRelatedField(
        queryset=SalesOrder.objects.all(), required=False, allow_null=True
    )
    delivery_challan = serializers.PrimaryKeyRelatedField(
        queryset=DeliveryChallan.objects.all(), required=False, allow_null=True
    )
    items = InvoiceLineInputSerializer(many=True, allow_empty=False)


class InvoiceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SalesInvoice.STATUS_CHOICES)
