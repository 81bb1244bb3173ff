# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "country", "tax_id", "is_active")
    list_filter = ("is_active", "country")
    search_fields = ("name", "tax_id")


class PurchaseInvoiceItemInline(admin.TabularInline):
    model = PurchaseInvoiceItem
    extra = 0
    readonly_fields = ("line_total",)


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "supplier", "invoice_date", "status", "total_amount", "journal_entry")
    list_filter = ("status",)
    search_fields = ("invoice_number", "supplier__name")
    readonly_fields = ("journal_entry", "created_by", "created_at", "updated_at")
    inlines = [PurchaseInvoiceItemInline]
