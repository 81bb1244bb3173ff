# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
JOURNAL ENTRY LINE MODEL

One debit OR credit line of a JournalEntry.

Guarantees:
- Immutable once created (no updates; deletes only through the engine)
- Exactly one of debit / credit is non-zero (engine-enforced, checked again here)
- Optional sub-ledger tags (customer / supplier / batch) for drill-down
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


class JournalEntryLine(models.Model):
    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    line_number = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    # Sub-ledger drill-down (loose ids: the source tables live in other apps)
    customer_id = models.BigIntegerField(null=True, blank=True)
    supplier_id = models.BigIntegerField(null=True, blank=True)
    batch_id = models.BigIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"
        ordering = ["journal_entry_id", "line_number"]
        indexes = [
            models.Index(fields=["account"]),
            models.Index(fields=["journal_entry", "line_number"]),
            models.Index(fields=["customer_id"]),
            models.Index(fields=["supplier_id"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["journal_entry", "line_number"],
                name="uniq_journal_line_number",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_journal_line_non_negative",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{side} → {self.account}"

    def clean(self):
        if self.debit is None or self.credit is None:
            raise ValidationError("debit and credit are required")

        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit or credit cannot be negative")

        if self.debit > 0 and self.credit > 0:
            raise ValidationError("A line cannot have both debit and credit")

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntryLine records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)
