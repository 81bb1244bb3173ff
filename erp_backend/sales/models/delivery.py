# sales/models/delivery.py

"""
DELIVERY CHALLAN (DC)

Stock rule (deduct ONCE):
- Adding an item only releases the matching reservations.
- current_stock is deducted only when the challan is approved
  (sales.services.delivery_service.approve_delivery_challan).
"""

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone

from accounting.services.numbering import assign_number


class DeliveryChallan(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_APPROVED = "approved"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_APPROVED, "Approved"),
    ]

    challan_number = models.CharField(max_length=32, unique=True, blank=True)
    challan_date = models.DateField(default=timezone.localdate)

    customer = models.ForeignKey(
        "sales.Customer",
        on_delete=models.PROTECT,
        related_name="delivery_challans",
    )
    sales_order = models.ForeignKey(
        "sales.SalesOrder",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="delivery_challans",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    approved_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-challan_date", "-id"]
        indexes = [
            models.Index(fields=["status", "approved_at"]),
            models.Index(fields=["customer", "challan_date"]),
        ]

    def __str__(self):
        return f"{self.challan_number} ({self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == self.STATUS_APPROVED

    def clean(self):
        if self.status == self.STATUS_APPROVED and not self.approved_at:
            raise ValidationError({"approved_at": "approved_at is required when approved"})

        if self.sales_order_id and self.sales_order.customer_id != self.customer_id:
            raise ValidationError({"sales_order": "sales order belongs to another customer"})

    @transaction.atomic
    def save(self, *args, **kwargs):
        assign_number(self, "DC", on=self.challan_date)
        self.full_clean()
        return super().save(*args, **kwargs)


class DeliveryChallanItem(models.Model):
    delivery_challan = models.ForeignKey(
        DeliveryChallan,
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "inventory.Product",
        on_delete=models.PROTECT,
        related_name="delivery_items",
    )
    batch = models.ForeignKey(
        "inventory.Batch",
        on_delete=models.PROTECT,
        related_name="delivery_items",
    )
    sales_order_item = models.ForeignKey(
        "sales.SalesOrderItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="delivery_items",
    )

    quantity = models.PositiveIntegerField()

    # Reservation quantity this line consumed (restored if the challan is deleted)
    released_quantity = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.delivery_challan_id} | {self.batch_id} x{self.quantity}"

    def clean(self):
        if not self.quantity:
            raise ValidationError({"quantity": "quantity must be greater than zero"})
        if self.batch_id and self.product_id and self.batch.product_id != self.product_id:
            raise ValidationError({"batch": "Batch does not belong to product"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
