# inventory/models/product.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    A finished-goods SKU.

    STOCK MODEL (IMPORTANT):
    - Stock lives in Batch rows
    - current_stock is a DERIVED aggregate (sum of active batches), written only by
      inventory.services.stock_counters.recompute_product_stock()
    """

    sku = models.CharField(max_length=64, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    unit = models.CharField(max_length=32, blank=True, default="box")

    selling_price = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )

    current_stock = models.IntegerField(
        default=0,
        editable=False,
        help_text="Derived: sum of current_stock over active batches",
    )

    low_stock_threshold = models.PositiveIntegerField(default=10)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["sku"]),
            models.Index(fields=["name"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        self.sku = (self.sku or "").strip()
        if not self.sku:
            raise ValidationError({"sku": "sku is required"})

        if self.selling_price is not None and Decimal(self.selling_price) < Decimal("0.00"):
            raise ValidationError({"selling_price": "selling_price cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= int(self.low_stock_threshold or 0)
