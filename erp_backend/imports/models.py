# imports/models.py

"""
======================================================
PATH: imports/models.py
======================================================
IMPORT CONTAINERS + PROCUREMENT REQUIREMENTS

Cost pool rule (HARD):
- total_import_expenses = sum(ALLOCATABLE_COST_FIELDS)
- ppn_import (recoverable input VAT) and pph_import (withholding tax) are kept
  for tax filing only and NEVER enter inventory cost.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

TWOPLACES = Decimal("0.01")

ALLOCATABLE_COST_FIELDS = (
    "duty_bm",
    "freight_charges",
    "clearing_forwarding",
    "port_charges",
    "container_handling",
    "transportation",
    "loading_import",
    "bpom_ski_fees",
    "other_import_costs",
)

TAX_COST_FIELDS = ("ppn_import", "pph_import")

COST_FIELDS = ALLOCATABLE_COST_FIELDS + TAX_COST_FIELDS


def _cost_field(help_text=""):
    return models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=help_text,
    )


class ImportContainer(models.Model):
    STATUS_IN_TRANSIT = "in_transit"
    STATUS_ARRIVED = "arrived"
    STATUS_CLEARED = "cleared"
    STATUS_CLOSED = "closed"

    STATUSES = [
        (STATUS_IN_TRANSIT, "In Transit"),
        (STATUS_ARRIVED, "Arrived"),
        (STATUS_CLEARED, "Customs Cleared"),
        (STATUS_CLOSED, "Closed"),
    ]

    container_number = models.CharField(max_length=64, unique=True)
    bl_number = models.CharField(max_length=64, blank=True, default="", help_text="Bill of lading")

    supplier = models.ForeignKey(
        "purchases.Supplier",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="import_containers",
    )

    arrival_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUSES, default=STATUS_IN_TRANSIT)

    # Capitalizable costs
    duty_bm = _cost_field("Bea Masuk (import duty)")
    freight_charges = _cost_field()
    clearing_forwarding = _cost_field()
    port_charges = _cost_field()
    container_handling = _cost_field()
    transportation = _cost_field()
    loading_import = _cost_field()
    bpom_ski_fees = _cost_field("BPOM / SKI regulatory fees")
    other_import_costs = _cost_field()

    # Taxes tracked for filing only
    ppn_import = _cost_field("Import VAT (recoverable, excluded from cost)")
    pph_import = _cost_field("Import PPh 22 (withholding, excluded from cost)")

    total_import_expenses = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )

    allocated_at = models.DateTimeField(null=True, blank=True, editable=False)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["arrival_date"]),
        ]

    def __str__(self):
        return self.container_number

    @property
    def allocatable_pool(self) -> Decimal:
        total = sum((Decimal(getattr(self, f) or 0) for f in ALLOCATABLE_COST_FIELDS), Decimal("0"))
        return total.quantize(TWOPLACES)

    def clean(self):
        self.container_number = (self.container_number or "").strip()
        if not self.container_number:
            raise ValidationError({"container_number": "container_number is required"})

        for name in COST_FIELDS:
            value = getattr(self, name)
            if value is not None and Decimal(value) < Decimal("0.00"):
                raise ValidationError({name: f"{name} cannot be negative"})

    def save(self, *args, **kwargs):
        for name in COST_FIELDS:
            if getattr(self, name) is None:
                setattr(self, name, Decimal("0.00"))
        self.total_import_expenses = self.allocatable_pool
        self.full_clean()
        return super().save(*args, **kwargs)


class ImportRequirement(models.Model):
    """
    Procurement task generated when a sales order cannot be fully reserved.
    """

    STATUS_PENDING = "pending"
    STATUS_ORDERED = "ordered"
    STATUS_FULFILLED = "fulfilled"
    STATUS_CANCELLED = "cancelled"

    STATUSES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ORDERED, "Ordered"),
        (STATUS_FULFILLED, "Fulfilled"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.CASCADE,
        related_name="import_requirements",
    )
    sales_order = models.ForeignKey(
        "sales.SalesOrder",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="import_requirements",
    )

    required_quantity = models.PositiveIntegerField()
    shortage_quantity = models.PositiveIntegerField()

    status = models.CharField(max_length=16, choices=STATUSES, default=STATUS_PENDING)
    notes = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["sales_order", "status"]),
        ]

    def __str__(self):
        return f"{self.product_id} short {self.shortage_quantity} ({self.status})"

    def clean(self):
        if self.shortage_quantity and self.required_quantity < self.shortage_quantity:
            raise ValidationError("shortage_quantity cannot exceed required_quantity")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
