# inventory/models/reservation.py

"""
STOCK RESERVATION

One row = one FIFO consumption of a batch for a sales-order line.

SINGLE SOURCE OF TRUTH:
- Batch.reserved_stock == sum(reserved_quantity) of ACTIVE rows for that batch.
- Every save/delete of a row fires a receiver that recomputes the batch counter;
  nothing else writes reserved_stock.
"""

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class StockReservation(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_RELEASED = "released"

    STATUSES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_RELEASED, "Released"),
    ]

    sales_order = models.ForeignKey(
        "sales.SalesOrder",
        on_delete=models.CASCADE,
        related_name="reservations",
    )
    sales_order_item = models.ForeignKey(
        "sales.SalesOrderItem",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="reservations",
    )
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.CASCADE,
        related_name="reservations",
    )

    reserved_quantity = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=STATUSES, default=STATUS_ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    released_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["sales_order", "product", "batch", "status"]),
            models.Index(fields=["batch", "status"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(status="released") | Q(reserved_quantity__gt=0),
                name="active_reservation_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.sales_order_id} | {self.batch_id} x{self.reserved_quantity} ({self.status})"

    def clean(self):
        if self.batch_id and self.product_id and self.batch.product_id != self.product_id:
            raise ValidationError("Batch does not belong to product")

        if self.status == self.STATUS_ACTIVE and not self.reserved_quantity:
            raise ValidationError({"reserved_quantity": "active reservations need a quantity"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
