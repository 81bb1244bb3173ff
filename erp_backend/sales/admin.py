# sales/admin.py

"""
Admin rules:
- Derived fields (numbers, totals, released quantities) are read-only.
- Challan approval and deletion go through delivery_service so stock and
  reservations move with them.
"""

from django.contrib import admin, messages

from inventory.services.exceptions import InsufficientStockError
from sales.models import (
    Customer,
    DeliveryChallan,
    DeliveryChallanItem,
    SalesInvoice,
    SalesInvoiceItem,
    SalesOrder,
    SalesOrderItem,
)
from sales.services.delivery_service import approve_delivery_challan, delete_delivery_challan
from sales.services.exceptions import SalesWorkflowError


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "tax_id", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name", "tax_id")


# ======================================================
# ORDERS
# ======================================================


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0
    readonly_fields = ("line_total",)


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "order_date", "customer", "status")
    list_filter = ("status", "order_date")
    search_fields = ("order_number", "customer__name")
    readonly_fields = ("order_number", "status", "approved_at", "cancelled_at", "created_at")
    inlines = [SalesOrderItemInline]


# ======================================================
# DELIVERY CHALLANS
# ======================================================


class DeliveryChallanItemInline(admin.TabularInline):
    model = DeliveryChallanItem
    extra = 0
    readonly_fields = ("released_quantity",)


@admin.register(DeliveryChallan)
class DeliveryChallanAdmin(admin.ModelAdmin):
    list_display = ("challan_number", "challan_date", "customer", "sales_order", "status")
    list_filter = ("status", "challan_date")
    search_fields = ("challan_number", "customer__name", "sales_order__order_number")
    readonly_fields = ("challan_number", "status", "approved_at", "created_at")
    inlines = [DeliveryChallanItemInline]
    actions = ["approve_selected"]

    @admin.action(description="Approve selected challans (deduct stock)")
    def approve_selected(self, request, queryset):
        for challan in queryset:
            try:
                approve_delivery_challan(challan, created_by=request.user.get_username())
            except (InsufficientStockError, SalesWorkflowError) as exc:
                self.message_user(request, f"{challan.challan_number}: {exc}", level=messages.ERROR)

    def delete_model(self, request, obj):
        delete_delivery_challan(obj, created_by=request.user.get_username())

    def delete_queryset(self, request, queryset):
        for challan in queryset:
            delete_delivery_challan(challan, created_by=request.user.get_username())


# ======================================================
# INVOICES
# ======================================================


class SalesInvoiceItemInline(admin.TabularInline):
    model = SalesInvoiceItem
    extra = 0
    readonly_fields = ("line_total",)


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "invoice_date", "customer", "status", "total_amount")
    list_filter = ("status", "invoice_date")
    search_fields = ("invoice_number", "customer__name")
    readonly_fields = (
        "invoice_number",
        "subtotal_amount",
        "total_amount",
        "journal_entry",
        "created_at",
        "updated_at",
    )
    inlines = [SalesInvoiceItemInline]
