# imports/signals.py

"""
Re-allocation triggers (recompute-from-scratch, never incremental).

- ImportContainer save with a changed cost field -> reallocate that container
- Batch insert/update touching container link, import_price, import_quantity
  or import_price_per_unit -> reallocate old and new container
- Batch delete -> reallocate its container

The Batch "OLD row" snapshot is taken by inventory.signals (pre_save).
"""

from django.db.models.signals import post_delete, post_save, pre_delete, pre_save
from django.dispatch import receiver

from accounting.services.change_tracking import (
    changed_fields,
    previous_values,
    remember_previous,
)
from imports.models import COST_FIELDS, ImportContainer
from imports.services.cost_allocation import allocate_container_costs, reset_batch_allocation
from inventory.models import Batch

BATCH_COST_FIELDS = ("import_container", "import_price", "import_quantity", "import_price_per_unit")


@receiver(pre_save, sender=ImportContainer)
def remember_container_costs(sender, instance, **kwargs):
    remember_previous(instance, COST_FIELDS)


@receiver(post_save, sender=ImportContainer)
def container_saved(sender, instance, created, **kwargs):
    if created or changed_fields(instance, COST_FIELDS):
        allocate_container_costs(instance)


@receiver(post_save, sender=Batch)
def batch_cost_inputs_saved(sender, instance, created, **kwargs):
    if created:
        if instance.import_container_id:
            allocate_container_costs(instance.import_container_id)
        return

    if not changed_fields(instance, BATCH_COST_FIELDS):
        return

    previous = previous_values(instance) or {}
    old_container_id = previous.get("import_container")

    if old_container_id and old_container_id != instance.import_container_id:
        allocate_container_costs(old_container_id)

    if instance.import_container_id:
        allocate_container_costs(instance.import_container_id)
    else:
        reset_batch_allocation(instance)


@receiver(post_delete, sender=Batch)
def batch_deleted(sender, instance, **kwargs):
    container_id = instance.import_container_id
    if container_id and ImportContainer.objects.filter(pk=container_id).exists():
        allocate_container_costs(container_id)


@receiver(pre_delete, sender=ImportContainer)
def container_deleted(sender, instance, **kwargs):
    # batches are unlinked by SET_NULL without signals; drop their shares now
    for batch in instance.batches.all():
        reset_batch_allocation(batch)
