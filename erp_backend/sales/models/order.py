# sales/models/order.py

"""
SALES ORDER

State machine:
    draft -> (reserve) -> stock_reserved | shortage -> (deliver fully) -> delivered
    any non-delivered state -> cancelled

Status changes go through sales.services.order_service; the reservation engine
(inventory.services.reservation_service) decides stock_reserved vs shortage.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from accounting.services.numbering import assign_number

TWOPLACES = Decimal("0.01")


class SalesOrder(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_STOCK_RESERVED = "stock_reserved"
    STATUS_SHORTAGE = "shortage"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_STOCK_RESERVED, "Stock Reserved"),
        (STATUS_SHORTAGE, "Shortage"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    # states holding (or waiting for) reservations
    OPEN_STATUSES = (STATUS_STOCK_RESERVED, STATUS_SHORTAGE)

    order_number = models.CharField(max_length=32, unique=True, blank=True)
    order_date = models.DateField(default=timezone.localdate)

    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="sales_orders",
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    notes = models.TextField(blank=True, default="")

    approved_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-order_date", "-id"]
        indexes = [
            models.Index(fields=["status", "order_date"]),
            models.Index(fields=["customer", "order_date"]),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items.all()), Decimal("0.00"))

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, "SO", on=self.order_date)
        self.full_clean()
        return super().save(*args, **kwargs)


class SalesOrderItem(models.Model):
    sales_order = models.ForeignKey(
        SalesOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        related_name="sales_order_items",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.sales_order_id} | {self.product_id} x{self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return (Decimal(self.quantity or 0) * Decimal(self.unit_price or 0)).quantize(TWOPLACES)

    def clean(self):
        if not self.quantity:
            raise ValidationError({"quantity": "quantity must be greater than zero"})
        if self.unit_price is not None and Decimal(self.unit_price) < Decimal("0.00"):
            raise ValidationError({"unit_price": "unit_price cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
