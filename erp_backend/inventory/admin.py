# inventory/admin.py

"""
Stock counters are derived; the admin shows them but never edits them.
"""

from django.contrib import admin

from inventory.models import Batch, InventoryTransaction, Product, StockReservation


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "unit", "current_stock", "low_stock_threshold", "is_active")
    list_filter = ("is_active",)
    search_fields = ("sku", "name")
    readonly_fields = ("current_stock", "created_at", "updated_at")


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = (
        "batch_number",
        "product",
        "expiry_date",
        "current_stock",
        "reserved_stock",
        "import_container",
        "landed_cost_per_unit",
    )
    list_filter = ("is_active", "expiry_date")
    search_fields = ("batch_number", "product__name", "product__sku")
    readonly_fields = (
        "reserved_stock",
        "import_cost_allocated",
        "final_landed_cost",
        "landed_cost_per_unit",
        "created_at",
        "updated_at",
    )

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        # after intake, stock only moves through deliveries
        if obj is not None:
            return fields + ("current_stock",)
        return fields


@admin.register(StockReservation)
class StockReservationAdmin(admin.ModelAdmin):
    list_display = ("sales_order", "product", "batch", "reserved_quantity", "status", "created_at")
    list_filter = ("status",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ("created_at", "transaction_type", "product", "batch", "quantity", "reference_type", "reference_id")
    list_filter = ("transaction_type", "reference_type")
    search_fields = ("reference_id", "product__name", "batch__batch_number")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
