# inventory/services/stock_counters.py

"""
======================================================
PATH: inventory/services/stock_counters.py
======================================================
DERIVED STOCK COUNTERS (SINGLE WRITER)

- Batch.reserved_stock   = sum(active StockReservation.reserved_quantity)
- Product.current_stock  = sum(Batch.current_stock) over active batches

These two functions are the ONLY code allowed to write those columns.
They recompute from scratch (never +=/-=) and write with queryset.update(),
which fires no signals.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.db.models import F, IntegerField, OuterRef, Subquery, Sum, Value
from django.db.models.functions import Coalesce

from inventory.models import Batch, Product, StockReservation

logger = logging.getLogger(__name__)


def _ids(values: Iterable) -> list[int]:
    return sorted({int(getattr(v, "pk", v)) for v in values if v is not None})


def _active_reserved_subquery():
    return Coalesce(
        Subquery(
            StockReservation.objects.filter(
                batch_id=OuterRef("pk"),
                status=StockReservation.STATUS_ACTIVE,
            )
            .order_by()
            .values("batch_id")
            .annotate(total=Sum("reserved_quantity"))
            .values("total")[:1],
            output_field=IntegerField(),
        ),
        Value(0),
    )


def recompute_batch_reserved_stock(batch_ids: Iterable) -> int:
    """Rewrite reserved_stock for the given batches. Returns rows updated."""
    ids = _ids(batch_ids)
    if not ids:
        return 0
    return Batch.objects.filter(pk__in=ids).update(reserved_stock=_active_reserved_subquery())


def recompute_product_stock(product_ids: Iterable) -> int:
    """Rewrite current_stock for the given products from their active batches."""
    ids = _ids(product_ids)
    if not ids:
        return 0

    batch_total = Coalesce(
        Subquery(
            Batch.objects.filter(product_id=OuterRef("pk"), is_active=True)
            .order_by()
            .values("product_id")
            .annotate(total=Sum("current_stock"))
            .values("total")[:1],
            output_field=IntegerField(),
        ),
        Value(0),
    )
    return Product.objects.filter(pk__in=ids).update(current_stock=batch_total)


def check_reservation_consistency() -> list[dict]:
    """
    Audit: batches whose reserved_stock differs from the active-reservation sum,
    or whose free stock went negative. Empty list == consistent.
    """
    rows = (
        Batch.objects.annotate(expected=_active_reserved_subquery())
        .exclude(reserved_stock=F("expected"))
        .values("id", "batch_number", "current_stock", "reserved_stock", "expected")
    )
    problems = [
        {
            "batch_id": r["id"],
            "batch_number": r["batch_number"],
            "reserved_stock": r["reserved_stock"],
            "active_reservations": r["expected"],
            "current_stock": r["current_stock"],
        }
        for r in rows
    ]

    oversold = Batch.objects.filter(reserved_stock__gt=F("current_stock")).values(
        "id", "batch_number", "current_stock", "reserved_stock"
    )
    for r in oversold:
        problems.append(
            {
                "batch_id": r["id"],
                "batch_number": r["batch_number"],
                "reserved_stock": r["reserved_stock"],
                "active_reservations": r["reserved_stock"],
                "current_stock": r["current_stock"],
            }
        )

    if problems:
        logger.error("Reservation consistency check found %s problem(s)", len(problems))
    return problems
