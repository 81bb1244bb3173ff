# finance/api/serializers.py

from rest_framework import serializers

from finance.models import (
    BankAccount,
    BankStatementLine,
    FinanceExpense,
    FundTransfer,
    PaymentVoucher,
    PettyCashTransaction,
    ReceiptVoucher,
)


class BankAccountSerializer(serializers.ModelSerializer):
    coa_code = serializers.CharField(source="coa_account.code", read_only=True, default=None)

    class Meta:
        model = BankAccount
        fields = (
            "id",
            "name",
            "bank_name",
            "account_number",
            "currency",
            "coa_account",
            "coa_code",
            "is_active",
            "created_at",
        )
        read_only_fields = ("id", "created_at")


class FinanceExpenseSerializer(serializers.ModelSerializer):
    ledger_reference = serializers.CharField(read_only=True)
    is_capitalized = serializers.BooleanField(read_only=True)

    class Meta:
        model = FinanceExpense
        fields = (
            "id",
            "ledger_reference",
            "expense_date",
            "expense_category",
            "description",
            "vendor_name",
            "amount",
            "payment_method",
            "bank_account",
            "import_container",
            "is_capitalized",
            "petty_cash_transaction",
            "journal_entry",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "petty_cash_transaction",
            "journal_entry",
            "created_by",
            "created_at",
            "updated_at",
        )


class PettyCashTransactionSerializer(serializers.ModelSerializer):
    is_expense_mirror = serializers.BooleanField(read_only=True)

    class Meta:
        model = PettyCashTransaction
        fields = (
            "id",
            "transaction_number",
            "transaction_date",
            "transaction_type",
            "amount",
            "description",
            "expense_category",
            "bank_account",
            "finance_expense",
            "is_expense_mirror",
            "journal_entry",
            "created_by",
            "created_at",
        )
        read_only_fields = (
            "id",
            "transaction_number",
            "finance_expense",
            "journal_entry",
            "created_by",
            "created_at",
        )


class FundTransferSerializer(serializers.ModelSerializer):
    class Meta:
        model = FundTransfer
        fields = (
            "id",
            "transfer_number",
            "transfer_date",
            "from_account_type",
            "from_bank_account",
            "to_account_type",
            "to_bank_account",
            "from_amount",
            "to_amount",
            "from_currency",
            "to_currency",
            "exchange_rate",
            "description",
            "status",
            "posted_at",
            "from_statement_line",
            "to_statement_line",
            "journal_entry",
            "created_by",
            "created_at",
        )
        read_only_fields = (
            "id",
            "transfer_number",
            "status",
            "posted_at",
            "journal_entry",
            "created_by",
            "created_at",
        )


class _VoucherFields:
    common = (
        "id",
        "voucher_number",
        "voucher_date",
        "amount",
        "payment_method",
        "bank_account",
        "coa_account",
        "description",
        "journal_entry",
        "created_by",
        "created_at",
    )
    read_only = ("id", "voucher_number", "journal_entry", "created_by", "created_at")


class ReceiptVoucherSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReceiptVoucher
        fields = _VoucherFields.common + ("customer",)
        read_only_fields = _VoucherFields.read_only


class PaymentVoucherSerializer(serializers.ModelSerializer):
    net_amount = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)

    class Meta:
        model = PaymentVoucher
        fields = _VoucherFields.common + ("supplier", "pph_amount", "net_amount")
        read_only_fields = _VoucherFields.read_only


class BankStatementLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = BankStatementLine
        fields = "__all__"
        read_only_fields = ("id", "reconciliation_status", "matched_transfer")
