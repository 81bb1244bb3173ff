# finance/admin.py

from django.contrib import admin

from finance.models import (
    BankAccount,
    BankStatementLine,
    FinanceExpense,
    FundTransfer,
    PaymentVoucher,
    PettyCashTransaction,
    ReceiptVoucher,
)

LEDGER_READONLY = ("journal_entry", "created_by", "created_at")


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "bank_name", "account_number", "currency", "coa_account", "is_active")
    list_filter = ("currency", "is_active")
    search_fields = ("name", "account_number")


@admin.register(FinanceExpense)
class FinanceExpenseAdmin(admin.ModelAdmin):
    list_display = ("id", "expense_date", "expense_category", "amount", "payment_method", "import_container")
    list_filter = ("payment_method", "expense_category")
    search_fields = ("description", "vendor_name")
    readonly_fields = LEDGER_READONLY + ("petty_cash_transaction", "updated_at")


@admin.register(PettyCashTransaction)
class PettyCashTransactionAdmin(admin.ModelAdmin):
    list_display = ("transaction_number", "transaction_date", "transaction_type", "amount", "finance_expense")
    list_filter = ("transaction_type",)
    readonly_fields = LEDGER_READONLY + ("transaction_number", "finance_expense")


@admin.register(FundTransfer)
class FundTransferAdmin(admin.ModelAdmin):
    list_display = ("transfer_number", "transfer_date", "from_account_type", "to_account_type", "from_amount", "status")
    list_filter = ("status",)
    readonly_fields = LEDGER_READONLY + ("transfer_number", "from_currency", "to_currency", "exchange_rate", "posted_at")


@admin.register(ReceiptVoucher)
class ReceiptVoucherAdmin(admin.ModelAdmin):
    list_display = ("voucher_number", "voucher_date", "customer", "amount", "payment_method")
    readonly_fields = LEDGER_READONLY + ("voucher_number",)


@admin.register(PaymentVoucher)
class PaymentVoucherAdmin(admin.ModelAdmin):
    list_display = ("voucher_number", "voucher_date", "supplier", "amount", "pph_amount", "payment_method")
    readonly_fields = LEDGER_READONLY + ("voucher_number",)


@admin.register(BankStatementLine)
class BankStatementLineAdmin(admin.ModelAdmin):
    list_display = ("bank_account", "transaction_date", "debit", "credit", "reconciliation_status")
    list_filter = ("reconciliation_status", "bank_account")
