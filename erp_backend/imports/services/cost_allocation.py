# imports/services/cost_allocation.py

"""
======================================================
PATH: imports/services/cost_allocation.py
======================================================
IMPORT (LANDED) COST ALLOCATOR

For every batch linked to a container:

    pool                 = sum(ALLOCATABLE_COST_FIELDS)          (PPN / PPh never included)
    import_cost_allocated = pool * weight(batch) / sum(weights)
    final_landed_cost     = import_price + import_cost_allocated
    landed_cost_per_unit  = import_price_per_unit + import_cost_allocated / import_quantity

weight = import_price (basis "value", default) or import_quantity (basis "quantity").

Rules:
- Recompute from scratch every time (never incremental); safe to re-run.
- Money is quantized to 0.01 ROUND_HALF_UP; the last batch absorbs the rounding
  residue so shares sum EXACTLY to the pool.
- Writes go through queryset.update() so batch/container receivers do not re-fire.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from imports.models import ImportContainer
from inventory.models import Batch

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
UNIT_PLACES = Decimal("0.0001")

BASIS_VALUE = "value"
BASIS_QUANTITY = "quantity"
ALLOCATION_BASES = (BASIS_VALUE, BASIS_QUANTITY)


class AllocationError(Exception):
    pass


def _money(v) -> Decimal:
    return Decimal(str(v or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def configured_basis() -> str:
    return (getattr(settings, "IMPORT_COST_ALLOCATION_BASIS", BASIS_VALUE) or BASIS_VALUE).lower()


def _validate_basis(basis: str | None) -> str:
    basis = (basis or configured_basis()).strip().lower()
    if basis not in ALLOCATION_BASES:
        raise AllocationError(
            f"Unknown allocation basis {basis!r}; expected one of {', '.join(ALLOCATION_BASES)}"
        )
    return basis


def _weight(batch: Batch, basis: str) -> Decimal:
    if basis == BASIS_QUANTITY:
        return Decimal(batch.import_quantity or 0)
    return Decimal(batch.import_price or 0)


def split_pool(pool: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """
    Proportional split of pool by weights, quantized to cents, summing exactly to pool.
    All-zero weights fall back to an equal split.
    """
    if not weights:
        return []

    total = sum(weights, Decimal("0"))
    if total <= 0:
        weights = [Decimal("1")] * len(weights)
        total = Decimal(len(weights))

    shares: list[Decimal] = []
    running = Decimal("0.00")
    for index, weight in enumerate(weights):
        if index == len(weights) - 1:
            share = pool - running
        else:
            share = (pool * weight / total).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
            running += share
        shares.append(share)
    return shares


def _landed_per_unit(batch: Batch, allocated: Decimal) -> Decimal:
    base = batch.import_price_per_unit
    if base is None:
        base = batch.default_price_per_unit() or Decimal("0")
    base = Decimal(base)

    if not batch.import_quantity:
        return base.quantize(UNIT_PLACES, rounding=ROUND_HALF_UP)
    return (base + allocated / Decimal(batch.import_quantity)).quantize(
        UNIT_PLACES, rounding=ROUND_HALF_UP
    )


def _write_batch(batch: Batch, allocated: Decimal) -> dict:
    final = _money(batch.import_price) + allocated
    per_unit = _landed_per_unit(batch, allocated)
    Batch.objects.filter(pk=batch.pk).update(
        import_cost_allocated=allocated,
        final_landed_cost=final,
        landed_cost_per_unit=per_unit,
    )
    return {
        "batch_id": batch.pk,
        "batch_number": batch.batch_number,
        "import_cost_allocated": allocated,
        "final_landed_cost": final,
        "landed_cost_per_unit": per_unit,
    }


# ============================================================
# PUBLIC API
# ============================================================


@transaction.atomic
def allocate_container_costs(container, *, basis: str | None = None) -> list[dict]:
    """Recompute landed cost for every batch of the container. Returns one row per batch."""
    basis = _validate_basis(basis)

    container_id = getattr(container, "pk", container)
    try:
        container = ImportContainer.objects.select_for_update().get(pk=container_id)
    except ImportContainer.DoesNotExist as exc:
        raise AllocationError(f"Import container {container_id} not found") from exc

    pool = container.allocatable_pool
    batches = list(Batch.objects.filter(import_container=container).order_by("created_at", "id"))

    if pool > 0 and batches and sum((_weight(b, basis) for b in batches), Decimal("0")) <= 0:
        logger.warning(
            "Container %s: all batch weights are zero on basis %r; splitting equally",
            container.container_number,
            basis,
        )

    shares = split_pool(pool, [_weight(b, basis) for b in batches])
    results = [_write_batch(batch, share) for batch, share in zip(batches, shares)]

    ImportContainer.objects.filter(pk=container.pk).update(
        total_import_expenses=pool, allocated_at=timezone.now()
    )

    logger.debug(
        "Allocated %s over %s batch(es) of container %s (basis=%s)",
        pool,
        len(batches),
        container.container_number,
        basis,
    )
    return results


def reset_batch_allocation(batch) -> dict:
    """A batch that left its container keeps only its own invoice value."""
    batch = Batch.objects.get(pk=getattr(batch, "pk", batch))
    return _write_batch(batch, Decimal("0.00"))


def reallocate_all_containers(*, basis: str | None = None) -> int:
    count = 0
    for container_id in ImportContainer.objects.order_by("id").values_list("id", flat=True):
        allocate_container_costs(container_id, basis=basis)
        count += 1
    return count


# ============================================================
# EXPENSE ROLLUP
# ============================================================

# FinanceExpense category -> container cost field it feeds
EXPENSE_CATEGORY_COST_FIELDS = {
    "freight_import": "freight_charges",
    "duty_import": "duty_bm",
    "bpom_ski_fees": "bpom_ski_fees",
    "other_import": "other_import_costs",
    "ppn_import": "ppn_import",
}


def sync_container_costs_from_expenses(container, categories=None) -> list[str]:
    """
    Overwrite the cost fields fed by linked expenses with the sum of those expenses.

    Only fields whose category is in ``categories`` are touched (all mapped fields
    when None). The container is saved normally, so a changed field triggers
    reallocation through the container receiver. Returns the fields written.
    """
    if categories is None:
        wanted = set(EXPENSE_CATEGORY_COST_FIELDS)
    else:
        wanted = {(c or "").strip().lower() for c in categories} & set(EXPENSE_CATEGORY_COST_FIELDS)
    if not wanted:
        return []

    container_id = getattr(container, "pk", container)
    try:
        container = ImportContainer.objects.get(pk=container_id)
    except ImportContainer.DoesNotExist:
        return []

    totals = dict(
        container.expenses.filter(expense_category__in=wanted)
        .order_by()
        .values("expense_category")
        .annotate(total=Sum("amount"))
        .values_list("expense_category", "total")
    )

    fields = []
    for category in sorted(wanted):
        field = EXPENSE_CATEGORY_COST_FIELDS[category]
        setattr(container, field, _money(totals.get(category) or 0))
        fields.append(field)

    container.save()
    logger.debug("Container %s costs synced from expenses: %s", container.container_number, fields)
    return fields
