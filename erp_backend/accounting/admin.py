# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import JournalEntryLine
from accounting.models.sequence import DocumentSequence

# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "normal_balance",
        "parent",
        "is_active",
    )
    list_filter = ("account_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("code",)
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("code", "name", "account_type", "normal_balance", "parent"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active",),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL ENTRY (READ-ONLY)
# ============================================================


class JournalEntryLineInline(admin.TabularInline):
    model = JournalEntryLine
    extra = 0
    can_delete = False
    fields = (
        "line_number",
        "account",
        "description",
        "debit",
        "credit",
        "customer_id",
        "supplier_id",
        "batch_id",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "entry_number",
        "entry_date",
        "source_module",
        "reference_number",
        "total_debit",
        "total_credit",
        "is_posted",
    )
    list_filter = ("source_module", "is_posted", "entry_date")
    search_fields = ("entry_number", "reference_number", "description")
    ordering = ("-entry_date", "-id")
    inlines = [JournalEntryLineInline]

    readonly_fields = (
        "entry_number",
        "entry_date",
        "source_module",
        "reference_id",
        "reference_number",
        "description",
        "total_debit",
        "total_credit",
        "is_posted",
        "posted_at",
        "created_by",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(admin.ModelAdmin):
    list_display = ("prefix", "last_value", "updated_at")
    search_fields = ("prefix",)
    readonly_fields = ("prefix", "last_value", "updated_at")

    def has_add_permission(self, request):
        return False
