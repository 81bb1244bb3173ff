# finance/models.py

"""
======================================================
PATH: finance/models.py
======================================================
CASH-SIDE DOCUMENTS

Every model here is a posting source: its save() fires a receiver in
finance/signals.py that builds exactly one JournalEntry through
accounting/services/posting.py.

Link rule:
- journal_entry is a SET_NULL foreign key; remove_journal_entry() clears it
  automatically, so "no link" always means "needs (re-)posting".
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from accounting.services.account_resolver import (
    PAYMENT_BANK_TRANSFER,
    PAYMENT_CASH,
    PAYMENT_PETTY_CASH,
)
from accounting.services.numbering import assign_number

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


def _functional_currency() -> str:
    return getattr(settings, "FUNCTIONAL_CURRENCY", "IDR")


NON_CAPITALIZABLE_CATEGORIES = ("ppn_import", "pph_import")

PAYMENT_METHODS = [
    (PAYMENT_CASH, "Cash"),
    (PAYMENT_BANK_TRANSFER, "Bank Transfer"),
    (PAYMENT_PETTY_CASH, "Petty Cash"),
]

# ============================================================
# BANK ACCOUNTS
# ============================================================


class BankAccount(models.Model):
    """
    A company bank account. coa_account links it to its own ledger account;
    unlinked accounts post to the generic bank account (1111).
    """

    name = models.CharField(max_length=120)
    bank_name = models.CharField(max_length=120, blank=True, default="")
    account_number = models.CharField(max_length=64, unique=True)
    currency = models.CharField(max_length=3, default=_functional_currency)

    coa_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bank_accounts",
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.currency})"

    def clean(self):
        self.currency = (self.currency or "").strip().upper()
        if len(self.currency) != 3:
            raise ValidationError({"currency": "currency must be a 3-letter ISO code"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ============================================================
# EXPENSES
# ============================================================


class FinanceExpense(models.Model):
    """
    A single paid or payable cost item.

    - import_container set   -> capitalized (Dr Inventory)
    - import_container empty -> P&L (Dr mapped expense account)
    - payment_method empty   -> unpaid (Cr Accounts Payable)
    """

    expense_date = models.DateField(default=timezone.localdate)
    expense_category = models.CharField(max_length=64)
    description = models.CharField(max_length=255, blank=True, default="")
    vendor_name = models.CharField(max_length=200, blank=True, default="")

    amount = models.DecimalField(max_digits=18, decimal_places=2)

    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHODS,
        null=True,
        blank=True,
    )
    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expenses",
    )
    import_container = models.ForeignKey(
        "imports.ImportContainer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="expenses",
    )

    petty_cash_transaction = models.ForeignKey(
        "finance.PettyCashTransaction",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-expense_date", "-id"]
        indexes = [
            models.Index(fields=["expense_date"]),
            models.Index(fields=["expense_category"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="finance_expense_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.ledger_reference} {self.expense_category} {self.amount}"

    @property
    def ledger_reference(self) -> str:
        return f"EXP-{self.pk}" if self.pk else ""

    @property
    def is_capitalized(self) -> bool:
        # import taxes stay out of inventory cost even when booked against a container
        return (
            self.import_container_id is not None
            and self.expense_category not in NON_CAPITALIZABLE_CATEGORIES
        )

    def clean(self):
        self.expense_category = (self.expense_category or "").strip().lower()
        if not self.expense_category:
            raise ValidationError({"expense_category": "expense_category is required"})

        if self.amount is None or _money(self.amount) <= Decimal("0.00"):
            raise ValidationError({"amount": "amount must be greater than zero"})

        if self.payment_method == "":
            self.payment_method = None

        if self.bank_account_id and self.payment_method != PAYMENT_BANK_TRANSFER:
            raise ValidationError(
                {"bank_account": "bank_account is only valid for bank_transfer payments"}
            )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


# ============================================================
# PETTY CASH
# ============================================================


class PettyCashTransaction(models.Model):
    TYPE_TOP_UP = "top_up"
    TYPE_EXPENSE = "expense"

    TYPES = [
        (TYPE_TOP_UP, "Top Up"),
        (TYPE_EXPENSE, "Expense"),
    ]

    transaction_number = models.CharField(max_length=32, unique=True, blank=True)
    transaction_date = models.DateField(default=timezone.localdate)
    transaction_type = models.CharField(max_length=16, choices=TYPES)

    amount = models.DecimalField(max_digits=18, decimal_places=2)
    description = models.CharField(max_length=255, blank=True, default="")
    expense_category = models.CharField(max_length=64, blank=True, default="")

    # Source of a top-up
    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="petty_cash_top_ups",
    )

    # Set when the row mirrors a petty-cash paid FinanceExpense (posted there, not here)
    finance_expense = models.ForeignKey(
        FinanceExpense,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transaction_date", "-id"]
        indexes = [
            models.Index(fields=["transaction_date"]),
            models.Index(fields=["transaction_type"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=Decimal("0.00")),
                name="petty_cash_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_number} {self.transaction_type} {self.amount}"

    @property
    def ledger_reference(self) -> str:
        return self.transaction_number

    @property
    def is_expense_mirror(self) -> bool:
        return self.finance_expense_id is not None

    def clean(self):
        if self.amount is None or _money(self.amount) <= Decimal("0.00"):
            raise ValidationError({"amount": "amount must be greater than zero"})

        self.expense_category = (self.expense_category or "").strip().lower()

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, "PC", on=self.transaction_date)
        self.full_clean()
        return super().save(*args, **kwargs)


# ============================================================
# FUND TRANSFERS
# ============================================================


class FundTransfer(models.Model):
    """
    Money moving between petty cash, cash on hand and bank accounts.

    Cross-currency transfers carry both amounts; the ledger records the
    functional-currency amount on both sides and leaves any FX difference
    for manual reconciliation. exchange_rate is informational.
    """

    ENDPOINT_PETTY_CASH = "petty_cash"
    ENDPOINT_CASH_ON_HAND = "cash_on_hand"
    ENDPOINT_BANK = "bank"

    ENDPOINTS = [
        (ENDPOINT_PETTY_CASH, "Petty Cash"),
        (ENDPOINT_CASH_ON_HAND, "Cash on Hand"),
        (ENDPOINT_BANK, "Bank"),
    ]

    STATUS_PENDING = "pending"
    STATUS_POSTED = "posted"
    STATUS_CANCELLED = "cancelled"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_POSTED, "Posted"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    transfer_number = models.CharField(max_length=32, unique=True, blank=True)
    transfer_date = models.DateField(default=timezone.localdate)

    from_account_type = models.CharField(max_length=16, choices=ENDPOINTS)
    from_bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transfers_out",
    )
    to_account_type = models.CharField(max_length=16, choices=ENDPOINTS)
    to_bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transfers_in",
    )

    from_amount = models.DecimalField(max_digits=18, decimal_places=2)
    to_amount = models.DecimalField(max_digits=18, decimal_places=2, null=True, blank=True)
    from_currency = models.CharField(max_length=3, blank=True, default="")
    to_currency = models.CharField(max_length=3, blank=True, default="")
    exchange_rate = models.DecimalField(max_digits=18, decimal_places=6, null=True, blank=True)

    description = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUSES, default=STATUS_PENDING)
    posted_at = models.DateTimeField(null=True, blank=True)

    from_statement_line = models.ForeignKey(
        "finance.BankStatementLine",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    to_statement_line = models.ForeignKey(
        "finance.BankStatementLine",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-transfer_date", "-id"]
        indexes = [
            models.Index(fields=["transfer_date"]),
            models.Index(fields=["status"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(from_amount__gt=Decimal("0.00")),
                name="fund_transfer_from_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.transfer_number} {self.from_account_type} -> {self.to_account_type}"

    @property
    def ledger_reference(self) -> str:
        return self.transfer_number

    @property
    def is_cross_currency(self) -> bool:
        return self.from_currency != self.to_currency

    def _default_currency(self, bank_account) -> str:
        if bank_account is not None:
            return bank_account.currency
        return _functional_currency()

    def clean(self):
        for side in ("from", "to"):
            kind = getattr(self, f"{side}_account_type")
            bank_id = getattr(self, f"{side}_bank_account_id")
            if kind == self.ENDPOINT_BANK and not bank_id:
                raise ValidationError(
                    {f"{side}_bank_account": f"{side}_bank_account is required for bank transfers"}
                )
            if kind != self.ENDPOINT_BANK and bank_id:
                raise ValidationError(
                    {f"{side}_bank_account": f"{side}_bank_account is only valid when the side is bank"}
                )

        if (
            self.from_account_type == self.to_account_type
            and self.from_bank_account_id == self.to_bank_account_id
        ):
            raise ValidationError("Source and destination must differ")

        if self.from_amount is None or _money(self.from_amount) <= Decimal("0.00"):
            raise ValidationError({"from_amount": "from_amount must be greater than zero"})

        self.from_currency = (
            (self.from_currency or "").strip().upper()
            or self._default_currency(self.from_bank_account)
        )
        self.to_currency = (
            (self.to_currency or "").strip().upper()
            or self._default_currency(self.to_bank_account)
        )

        if self.to_amount is None:
            if self.is_cross_currency:
                raise ValidationError({"to_amount": "to_amount is required for cross-currency transfers"})
            self.to_amount = self.from_amount

        if self.to_amount is not None and _money(self.to_amount) <= Decimal("0.00"):
            raise ValidationError({"to_amount": "to_amount must be greater than zero"})

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, "FT", on=self.transfer_date)
        self.full_clean()
        return super().save(*args, **kwargs)


# ============================================================
# VOUCHERS
# ============================================================


class _Voucher(models.Model):
    voucher_date = models.DateField(default=timezone.localdate)
    amount = models.DecimalField(max_digits=18, decimal_places=2)

    payment_method = models.CharField(
        max_length=20,
        choices=[(PAYMENT_CASH, "Cash"), (PAYMENT_BANK_TRANSFER, "Bank Transfer")],
        default=PAYMENT_BANK_TRANSFER,
    )
    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    # Optional override of the counter-account (AR for receipts, AP for payments)
    coa_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    NUMBER_KIND = ""

    class Meta:
        abstract = True
        ordering = ["-voucher_date", "-id"]

    def __str__(self):
        return f"{self.voucher_number} {self.amount}"

    @property
    def ledger_reference(self) -> str:
        return self.voucher_number

    def clean(self):
        if self.amount is None or _money(self.amount) <= Decimal("0.00"):
            raise ValidationError({"amount": "amount must be greater than zero"})

        if self.bank_account_id and self.payment_method != PAYMENT_BANK_TRANSFER:
            raise ValidationError(
                {"bank_account": "bank_account is only valid for bank_transfer vouchers"}
            )

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, self.NUMBER_KIND, on=self.voucher_date)
        self.full_clean()
        return super().save(*args, **kwargs)


class ReceiptVoucher(_Voucher):
    """Money received from a customer: Dr Cash/Bank, Cr Accounts Receivable."""

    NUMBER_KIND = "RV"

    voucher_number = models.CharField(max_length=32, unique=True, blank=True)
    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="receipt_vouchers",
    )

    class Meta(_Voucher.Meta):
        verbose_name = "Receipt Voucher"


class PaymentVoucher(_Voucher):
    """Money paid to a supplier: Dr Accounts Payable, Cr PPh withheld + Cash/Bank."""

    NUMBER_KIND = "PV"

    voucher_number = models.CharField(max_length=32, unique=True, blank=True)
    supplier = models.ForeignKey(
        "purchases.Supplier",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_vouchers",
    )
    pph_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta(_Voucher.Meta):
        verbose_name = "Payment Voucher"

    @property
    def net_amount(self) -> Decimal:
        return _money(self.amount) - _money(self.pph_amount)

    def clean(self):
        super().clean()
        pph = _money(self.pph_amount)
        if pph < Decimal("0.00"):
            raise ValidationError({"pph_amount": "pph_amount cannot be negative"})
        if pph >= _money(self.amount):
            raise ValidationError({"pph_amount": "pph_amount must be less than amount"})


# ============================================================
# BANK STATEMENTS
# ============================================================


class BankStatementLine(models.Model):
    STATUS_UNMATCHED = "unmatched"
    STATUS_MATCHED = "matched"

    STATUSES = [
        (STATUS_UNMATCHED, "Unmatched"),
        (STATUS_MATCHED, "Matched"),
    ]

    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.CASCADE,
        related_name="statement_lines",
    )
    transaction_date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    reconciliation_status = models.CharField(
        max_length=16, choices=STATUSES, default=STATUS_UNMATCHED
    )
    matched_transfer = models.ForeignKey(
        FundTransfer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="matched_statement_lines",
    )

    class Meta:
        ordering = ["-transaction_date", "-id"]
        indexes = [
            models.Index(fields=["bank_account", "transaction_date"]),
            models.Index(fields=["reconciliation_status"]),
        ]

    def __str__(self):
        return f"{self.bank_account} {self.transaction_date} {self.debit or self.credit}"
