# inventory/models/batch.py

"""
BATCH (ONE RECEIPT LOT)

Counters:
- current_stock   physical units on hand; changed only by the delivery service
                  (under select_for_update) and by returns
- reserved_stock  DERIVED = sum(active StockReservation.reserved_quantity);
                  written only by stock_counters.recompute_batch_reserved_stock()

Landed cost (written only by imports.services.cost_allocation):
- import_cost_allocated  share of the container's allocatable cost pool
- final_landed_cost      import_price + import_cost_allocated
- landed_cost_per_unit   import_price_per_unit + import_cost_allocated / import_quantity
"""

from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from .product import Product

UNIT_PLACES = Decimal("0.0001")


class Batch(models.Model):
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="batches",
    )

    batch_number = models.CharField(max_length=128)
    manufacturing_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)

    import_container = models.ForeignKey(
        "imports.ImportContainer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="batches",
    )

    # Total invoice value of the lot (not per unit)
    import_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    import_quantity = models.PositiveIntegerField(default=0)
    import_price_per_unit = models.DecimalField(
        max_digits=18, decimal_places=4, null=True, blank=True
    )

    current_stock = models.IntegerField(default=0)
    reserved_stock = models.IntegerField(default=0, editable=False)

    import_cost_allocated = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    final_landed_cost = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"), editable=False
    )
    landed_cost_per_unit = models.DecimalField(
        max_digits=18, decimal_places=4, default=Decimal("0.0000"), editable=False
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # FEFO/FIFO walk order; NULL expiries sort last
        ordering = [F("expiry_date").asc(nulls_last=True), "created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "batch_number"],
                name="uniq_batch_number_per_product",
            ),
            models.CheckConstraint(
                condition=Q(current_stock__gte=0),
                name="batch_current_stock_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(reserved_stock__gte=0),
                name="batch_reserved_stock_nonnegative",
            ),
            models.CheckConstraint(
                condition=Q(import_price__gte=Decimal("0.00")),
                name="batch_import_price_nonnegative",
            ),
        ]
        indexes = [
            models.Index(fields=["product", "expiry_date", "created_at"]),
            models.Index(fields=["import_container"]),
        ]

    def __str__(self):
        return f"{self.product.name} | {self.batch_number}"

    @property
    def free_stock(self) -> int:
        return int(self.current_stock or 0) - int(self.reserved_stock or 0)

    @property
    def is_expired(self) -> bool:
        return self.expiry_date is not None and self.expiry_date < timezone.localdate()

    @property
    def unit_cost(self) -> Decimal | None:
        """Best known cost basis per unit (landed if allocated, else invoice price)."""
        if self.landed_cost_per_unit and self.landed_cost_per_unit > 0:
            return self.landed_cost_per_unit
        if self.import_price_per_unit and self.import_price_per_unit > 0:
            return self.import_price_per_unit
        return None

    def default_price_per_unit(self) -> Decimal | None:
        if not self.import_quantity:
            return None
        return (Decimal(self.import_price or 0) / self.import_quantity).quantize(
            UNIT_PLACES, rounding=ROUND_HALF_UP
        )

    def clean(self):
        self.batch_number = (self.batch_number or "").strip()
        if not self.batch_number:
            raise ValidationError({"batch_number": "batch_number is required"})

        if self.import_price is not None and Decimal(self.import_price) < Decimal("0.00"):
            raise ValidationError({"import_price": "import_price cannot be negative"})

        if self.current_stock is not None and self.current_stock < 0:
            raise ValidationError({"current_stock": "current_stock cannot be negative"})

        if (
            self.manufacturing_date
            and self.expiry_date
            and self.expiry_date <= self.manufacturing_date
        ):
            raise ValidationError({"expiry_date": "expiry_date must be after manufacturing_date"})

    def save(self, *args, **kwargs):
        if self._state.adding and not self.current_stock:
            # a new lot arrives with its full imported quantity on hand
            self.current_stock = self.import_quantity

        if self.import_price_per_unit is None:
            self.import_price_per_unit = self.default_price_per_unit()

        self.full_clean()
        return super().save(*args, **kwargs)
