# inventory/models/transaction.py

"""
INVENTORY TRANSACTION LOG

Append-only audit trail of every quantity event (reservation, release,
sale, return, adjustment). quantity is signed from the batch's point of view:
sale = negative, return = positive; reservation/release do not touch
current_stock and are logged with the reserved quantity.
"""

from django.core.exceptions import ValidationError
from django.db import models


class InventoryTransaction(models.Model):
    class TransactionType(models.TextChoices):
        RESERVATION = "reservation", "Reservation"
        RELEASE = "release", "Release"
        SALE = "sale", "Sale"
        RETURN = "return", "Return"
        ADJUSTMENT = "adjustment", "Adjustment"

    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.CASCADE,
        related_name="inventory_transactions",
    )
    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="inventory_transactions",
    )

    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)
    quantity = models.IntegerField()

    reference_type = models.CharField(max_length=32, blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")
    notes = models.CharField(max_length=255, blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["product", "created_at"]),
            models.Index(fields=["batch", "created_at"]),
            models.Index(fields=["reference_type", "reference_id"]),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.quantity} ({self.product_id})"

    def clean(self):
        if self.quantity == 0:
            raise ValidationError({"quantity": "quantity cannot be zero"})

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("InventoryTransaction records are append-only")
        self.full_clean()
        return super().save(*args, **kwargs)
