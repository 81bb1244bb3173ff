# sales/models/invoice.py

"""
SALES INVOICE

Totals rule:
- subtotal_amount = sum(item.line_total), total_amount = subtotal + tax_amount
- both are DERIVED and written by sales.services.invoice_service.recompute_invoice_totals()
  (queryset update, so no signal loop); tax_amount is entered on the header

Ledger:
- posted while status is unpaid / partial / paid (see POSTABLE_STATUSES)
- ledger_reference = invoice_number
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.services.numbering import assign_number

TWOPLACES = Decimal("0.01")


class SalesInvoice(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_UNPAID = "unpaid"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    POSTABLE_STATUSES = (STATUS_UNPAID, STATUS_PARTIAL, STATUS_PAID)

    invoice_number = models.CharField(max_length=32, unique=True, blank=True)
    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    sales_order = models.ForeignKey(
        "sales.SalesOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )
    delivery_challan = models.ForeignKey(
        "sales.DeliveryChallan",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    subtotal_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    tax_amount = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
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
        ordering = ["-invoice_date", "-id"]
        indexes = [
            models.Index(fields=["status", "invoice_date"]),
            models.Index(fields=["customer", "invoice_date"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(tax_amount__gte=Decimal("0.00")),
                name="sales_invoice_tax_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"

    @property
    def ledger_reference(self) -> str:
        return self.invoice_number

    @property
    def is_postable(self) -> bool:
        return self.status in self.POSTABLE_STATUSES

    def clean(self):
        if self.tax_amount is not None and self.tax_amount < Decimal("0.00"):
            raise ValidationError({"tax_amount": "tax_amount cannot be negative"})

        if self.due_date and self.due_date < self.invoice_date:
            raise ValidationError({"due_date": "due_date cannot precede invoice_date"})

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, "INV", on=self.invoice_date)
        if self.pk:
            # never trust an in-memory subtotal; items may have changed since load
            self.subtotal_amount = self.items.aggregate(s=Sum("line_total"))["s"] or Decimal("0.00")
        self.total_amount = (
            Decimal(self.subtotal_amount or 0) + Decimal(self.tax_amount or 0)
        ).quantize(TWOPLACES)
        self.full_clean()
        return super().save(*args, **kwargs)


class SalesInvoiceItem(models.Model):
    invoice = models.ForeignKey(
        SalesInvoice,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        related_name="invoice_items",
    )
    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice_items",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=18, decimal_places=2)
    line_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.invoice_id} | {self.product_id} x{self.quantity}"

    def clean(self):
        if not self.quantity:
            raise ValidationError({"quantity": "quantity must be greater than zero"})
        if self.unit_price is None or self.unit_price < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})
        if self.batch_id and self.product_id and self.batch.product_id != self.product_id:
            raise ValidationError({"batch": "Batch does not belong to product"})

    def save(self, *args, **kwargs):
        self.line_total = (Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)).quantize(
            TWOPLACES
        )
        self.full_clean()
        return super().save(*args, **kwargs)
