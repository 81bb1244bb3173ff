# inventory/signals.py

"""
Counter recomputation triggers.

- StockReservation changed -> recompute Batch.reserved_stock (old + new batch)
- Batch changed            -> recompute Product.current_stock (old + new product)

Both recomputations write with queryset.update(), so they never re-enter here.
"""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from accounting.services.change_tracking import previous_values, remember_previous
from inventory.models import Batch, StockReservation
from inventory.services.stock_counters import (
    recompute_batch_reserved_stock,
    recompute_product_stock,
)


@receiver(pre_save, sender=StockReservation)
def remember_reservation_batch(sender, instance, **kwargs):
    remember_previous(instance, ("batch",))


@receiver(post_save, sender=StockReservation)
def reservation_saved(sender, instance, **kwargs):
    previous = previous_values(instance) or {}
    recompute_batch_reserved_stock([instance.batch_id, previous.get("batch")])


@receiver(post_delete, sender=StockReservation)
def reservation_deleted(sender, instance, **kwargs):
    recompute_batch_reserved_stock([instance.batch_id])


@receiver(pre_save, sender=Batch)
def remember_batch_product(sender, instance, **kwargs):
    remember_previous(
        instance,
        ("product", "import_container", "import_price", "import_quantity", "import_price_per_unit"),
    )


@receiver(post_save, sender=Batch)
def batch_saved(sender, instance, **kwargs):
    previous = previous_values(instance) or {}
    recompute_product_stock([instance.product_id, previous.get("product")])


@receiver(post_delete, sender=Batch)
def batch_deleted(sender, instance, **kwargs):
    recompute_product_stock([instance.product_id])
