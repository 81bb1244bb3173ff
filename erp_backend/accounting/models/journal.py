# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single accounting transaction (journal header).

Guarantees:
- Created once per source document by a posting routine; never updated in place
  (totals are written by the engine with a queryset update after the lines land)
- Corrections = remove entry + lines, then re-post (journal_entry_service.remove_journal_entry)
- Idempotency via (source_module, reference_number) uniqueness when a reference is provided
- entry_number format: JE<YYMM>-<4 digits>
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


class JournalEntry(models.Model):
    SOURCE_EXPENSE = "expenses"
    SOURCE_RECEIPT = "receipt"
    SOURCE_PAYMENT = "payment"
    SOURCE_FUND_TRANSFER = "fund_transfer"
    SOURCE_SALES_INVOICE = "sales_invoice"
    SOURCE_PURCHASE_INVOICE = "purchase_invoice"
    SOURCE_PETTY_CASH = "petty_cash"
    SOURCE_MANUAL = "manual"

    SOURCE_MODULES = [
        (SOURCE_EXPENSE, "Expense"),
        (SOURCE_RECEIPT, "Receipt Voucher"),
        (SOURCE_PAYMENT, "Payment Voucher"),
        (SOURCE_FUND_TRANSFER, "Fund Transfer"),
        (SOURCE_SALES_INVOICE, "Sales Invoice"),
        (SOURCE_PURCHASE_INVOICE, "Purchase Invoice"),
        (SOURCE_PETTY_CASH, "Petty Cash"),
        (SOURCE_MANUAL, "Manual"),
    ]

    entry_number = models.CharField(max_length=32, unique=True)
    entry_date = models.DateField(default=timezone.localdate)

    source_module = models.CharField(max_length=32, choices=SOURCE_MODULES)

    reference_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Primary key of the source document",
    )
    reference_number = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Human number of the source document (EXP-12, RV2601-0003, FT2601-0001...)",
    )

    description = models.TextField(help_text="Narrative description of the journal entry")

    total_debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    is_posted = models.BooleanField(default=True)
    posted_at = models.DateTimeField(default=timezone.now)

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-entry_date", "-created_at"]
        indexes = [
            models.Index(fields=["entry_date"]),
            models.Index(fields=["source_module", "reference_id"]),
            models.Index(fields=["reference_number"]),
            models.Index(fields=["is_posted"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["source_module", "reference_number"],
                condition=~Q(reference_number=""),
                name="uniq_journal_source_reference",
            )
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.entry_number} – {self.description[:40]}"

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def clean(self):
        self.reference_id = str(self.reference_id or "").strip()
        self.reference_number = str(self.reference_number or "").strip()

        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

        if not (self.entry_number or "").strip():
            raise ValidationError({"entry_number": "entry_number is required"})

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "JournalEntry records cannot be deleted directly; use remove_journal_entry()"
        )
