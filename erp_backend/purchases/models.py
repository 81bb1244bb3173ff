# purchases/models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from django.utils import timezone

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


class Supplier(models.Model):
    """
    Supplier master (foreign principals and local vendors).
    """

    name = models.CharField(max_length=200)
    country = models.CharField(max_length=64, blank=True, default="")
    tax_id = models.CharField(max_length=32, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"]),
            models.Index(fields=["is_active"]),
        ]

    def __str__(self):
        return self.name


class PurchaseInvoice(models.Model):
    """
    Supplier invoice header.

    Ledger:
    - posted while status is unpaid / partial / paid
    - posting waits until sum(items) + tax_amount == total_amount, so saving the
      header first or the items first both converge on one balanced entry
    - ledger_reference = "PI-<id>" (supplier invoice numbers are only unique per supplier)
    """

    STATUS_DRAFT = "draft"
    STATUS_UNPAID = "unpaid"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    POSTABLE_STATUSES = (STATUS_UNPAID, STATUS_PARTIAL, STATUS_PAID)

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    import_container = models.ForeignKey(
        "imports.ImportContainer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices",
    )

    invoice_number = models.CharField(max_length=64)
    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)

    tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
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
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "invoice_number"],
                name="uniq_supplier_invoice_number",
            ),
            models.CheckConstraint(
                condition=models.Q(tax_amount__gte=Decimal("0.00")),
                name="purchase_invoice_tax_nonnegative",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=Decimal("0.00")),
                name="purchase_invoice_total_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "invoice_number"]),
            models.Index(fields=["status", "invoice_date"]),
        ]

    def clean(self):
        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if self.tax_amount is not None and self.tax_amount < Decimal("0.00"):
            raise ValidationError({"tax_amount": "tax_amount cannot be negative"})

        if self.total_amount is not None and self.total_amount < Decimal("0.00"):
            raise ValidationError({"total_amount": "total_amount cannot be negative"})

    def save(self, *args, **kwargs):
        if self.invoice_number is not None:
            self.invoice_number = self.invoice_number.strip()

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_number} ({self.supplier.name})"

    @property
    def ledger_reference(self) -> str:
        return f"PI-{self.pk}" if self.pk else ""

    @property
    def is_postable(self) -> bool:
        return self.status in self.POSTABLE_STATUSES

    @property
    def items_total(self) -> Decimal:
        return _money(self.items.aggregate(s=Sum("line_total"))["s"])

    @property
    def is_complete(self) -> bool:
        """Items plus tax add up to the supplier's invoice total."""
        return self.items_total + _money(self.tax_amount) == _money(self.total_amount)


class PurchaseInvoiceItem(models.Model):
    """
    Supplier invoice line.

    item_type decides the debit side:
    - inventory -> Inventory (1130)
    - asset     -> asset_account, else Fixed Assets (1200)
    - expense   -> expense_account, else the expense_category mapping
    """

    TYPE_INVENTORY = "inventory"
    TYPE_ASSET = "asset"
    TYPE_EXPENSE = "expense"

    ITEM_TYPES = [
        (TYPE_INVENTORY, "Inventory"),
        (TYPE_ASSET, "Fixed Asset"),
        (TYPE_EXPENSE, "Expense"),
    ]

    invoice = models.ForeignKey(
        PurchaseInvoice,
        on_delete=models.CASCADE,
        related_name="items",
    )
    item_type = models.CharField(max_length=16, choices=ITEM_TYPES, default=TYPE_INVENTORY)

    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_invoice_items",
    )
    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoice_items",
    )

    description = models.CharField(max_length=255, blank=True, default="")
    expense_category = models.CharField(max_length=64, blank=True, default="")

    asset_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )
    expense_account = models.ForeignKey(
        "accounting.Account",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="+",
    )

    quantity = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("1.00"))
    unit_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="purchase_invoice_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=Decimal("0.00")),
                name="purchase_invoice_item_unit_price_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["invoice", "created_at"]),
        ]

    def clean(self):
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

        if self.unit_price is not None and self.unit_price < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})

        if self.item_type == self.TYPE_INVENTORY and not self.product_id:
            raise ValidationError({"product": "inventory lines need a product"})

        self.expense_category = (self.expense_category or "").strip().lower()

    def save(self, *args, **kwargs):
        self.line_total = _money(Decimal(str(self.quantity)) * Decimal(str(self.unit_price)))
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        label = getattr(self.product, "name", None) or self.description or self.item_type
        return f"{label} x {self.quantity}"
