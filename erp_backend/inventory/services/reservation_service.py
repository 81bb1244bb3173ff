# inventory/services/reservation_service.py

"""
======================================================
PATH: inventory/services/reservation_service.py
======================================================
FIFO/FEFO STOCK RESERVATION ENGINE

Reserve:
- Drop the order's active reservations (idempotent re-run)
- Per line: required = ordered - already delivered (approved challans that
  predate this run: same customer + product, approved after the order was created,
  challan unlinked or linked to this order)
  minus quantity already released to this order's draft challans; those units
  stay unreserved on their batch so the draft can still be approved
- Walk eligible batches: earliest expiry first, then oldest; skip expired and
  inactive batches; free = current_stock - reserved_stock
- Each consumption = one StockReservation row (never touch reserved_stock here)
- Unsatisfied remainder -> shortage list -> ImportRequirement rows

Release:
- Oldest reservation first; shrink reserved_quantity or flip to "released"

HARD RULE:
- Batch.reserved_stock is recomputed by the StockReservation receivers
  (inventory/signals.py) from the reservation table. This module only
  writes reservation rows.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from django.db import transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from imports.models import ImportRequirement
from inventory.models import Batch, InventoryTransaction, StockReservation
from inventory.services.exceptions import ReservationError
from sales.models import DeliveryChallan, DeliveryChallanItem, SalesOrder

logger = logging.getLogger(__name__)

REFERENCE_SALES_ORDER = "sales_order"


# ============================================================
# HELPERS
# ============================================================


def _to_int_qty(value) -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if isinstance(value, bool):
        raise ReservationError("quantity must be a whole integer unit")
    try:
        qty = int(value)
    except (TypeError, ValueError) as exc:
        raise ReservationError("quantity must be a whole integer unit") from exc
    if qty != value and str(qty) != str(value).strip():
        raise ReservationError("quantity must be a whole integer unit")
    if qty < 0:
        raise ReservationError("quantity cannot be negative")
    return qty


def eligible_batches(product_id, *, today=None):
    """FEFO/FIFO walk order, locked. NULL expiry dates sort last."""
    today = today or timezone.localdate()
    return (
        Batch.objects.select_for_update()
        .filter(product_id=product_id, is_active=True)
        .filter(Q(expiry_date__isnull=True) | Q(expiry_date__gte=today))
        .order_by(F("expiry_date").asc(nulls_last=True), "created_at", "id")
    )


def delivered_before_reservation(order: SalesOrder) -> dict[int, int]:
    """product_id -> quantity already delivered to the order's customer on approved challans."""
    rows = (
        DeliveryChallanItem.objects.filter(
            delivery_challan__status=DeliveryChallan.STATUS_APPROVED,
            delivery_challan__customer_id=order.customer_id,
            delivery_challan__approved_at__gte=order.created_at,
            product_id__in=order.items.values("product_id"),
        )
        .filter(
            Q(delivery_challan__sales_order__isnull=True)
            | Q(delivery_challan__sales_order=order)
        )
        .values("product_id")
        .annotate(qty=Sum("quantity"))
        .order_by()
    )
    return {r["product_id"]: int(r["qty"] or 0) for r in rows}


def draft_releases(order: SalesOrder) -> tuple[dict[int, int], dict[int, int]]:
    """
    Reservation quantity handed to this order's draft challans, which still
    has to be free at approval time. Returns (per product, per batch).
    """
    rows = (
        DeliveryChallanItem.objects.filter(
            delivery_challan__sales_order=order,
            delivery_challan__status=DeliveryChallan.STATUS_DRAFT,
            released_quantity__gt=0,
        )
        .values("product_id", "batch_id")
        .annotate(qty=Sum("released_quantity"))
        .order_by()
    )
    by_product: dict[int, int] = defaultdict(int)
    by_batch: dict[int, int] = defaultdict(int)
    for r in rows:
        by_product[r["product_id"]] += int(r["qty"] or 0)
        by_batch[r["batch_id"]] += int(r["qty"] or 0)
    return dict(by_product), dict(by_batch)


def _log(*, product_id, batch_id, kind, quantity, order, created_by="", notes=""):
    InventoryTransaction.objects.create(
        product_id=product_id,
        batch_id=batch_id,
        transaction_type=kind,
        quantity=quantity,
        reference_type=REFERENCE_SALES_ORDER,
        reference_id=str(order.pk),
        notes=notes,
        created_by=created_by or "",
    )


def _set_order_status(order: SalesOrder, status: str) -> None:
    SalesOrder.objects.filter(pk=order.pk).update(status=status, updated_at=timezone.now())
    order.status = status


# ============================================================
# RESERVE
# ============================================================


@transaction.atomic
def reserve_stock_for_order(order: SalesOrder, *, created_by: str = "") -> dict:
    """
    (Re)reserve stock for every line of the order.

    Returns:
        {"status": <new order status>, "reserved": [...], "shortages": [...]}
    """
    order = SalesOrder.objects.select_for_update().get(pk=order.pk)

    if order.status == SalesOrder.STATUS_CANCELLED:
        raise ReservationError(f"Sales order {order.order_number} is cancelled")

    items = list(order.items.select_related("product").order_by("id"))
    if not items:
        raise ReservationError(f"Sales order {order.order_number} has no items")

    # 1) idempotent re-run
    for reservation in StockReservation.objects.filter(
        sales_order=order, status=StockReservation.STATUS_ACTIVE
    ):
        reservation.delete()

    # 2) pre-delivered quantities plus draft challan holds, consumed line by line
    delivered_left = defaultdict(int, delivered_before_reservation(order))
    held_by_product, held_by_batch = draft_releases(order)
    for product_id, qty in held_by_product.items():
        delivered_left[product_id] += qty
    held_left = defaultdict(int, held_by_batch)

    reserved: list[dict] = []
    shortages: list[dict] = []
    fully_delivered_lines = 0
    today = timezone.localdate()

    for item in items:
        ordered = _to_int_qty(item.quantity)
        covered = min(ordered, delivered_left[item.product_id])
        delivered_left[item.product_id] -= covered
        required = ordered - covered

        if required == 0:
            fully_delivered_lines += 1
            continue

        # 3+4) greedy FEFO consumption
        for batch in eligible_batches(item.product_id, today=today):
            if required <= 0:
                break

            free = int(batch.current_stock) - int(batch.reserved_stock) - held_left[batch.pk]
            if free <= 0:
                continue

            take = min(free, required)
            StockReservation.objects.create(
                sales_order=order,
                sales_order_item=item,
                product_id=item.product_id,
                batch=batch,
                reserved_quantity=take,
            )
            _log(
                product_id=item.product_id,
                batch_id=batch.pk,
                kind=InventoryTransaction.TransactionType.RESERVATION,
                quantity=take,
                order=order,
                created_by=created_by,
            )
            reserved.append({"item_id": item.pk, "batch_id": batch.pk, "quantity": take})
            required -= take

        # 5) shortage
        if required > 0:
            shortages.append(
                {
                    "product_id": item.product_id,
                    "item_id": item.pk,
                    "required_quantity": ordered,
                    "shortage_quantity": required,
                }
            )

    _replace_requirements(order, shortages)

    if fully_delivered_lines == len(items):
        status = SalesOrder.STATUS_DELIVERED
    elif shortages:
        status = SalesOrder.STATUS_SHORTAGE
        logger.info(
            "Sales order %s short on %s line(s); import requirements generated",
            order.order_number,
            len(shortages),
        )
    else:
        status = SalesOrder.STATUS_STOCK_RESERVED

    _set_order_status(order, status)
    return {"status": status, "reserved": reserved, "shortages": shortages}


def _replace_requirements(order: SalesOrder, shortages: list[dict]) -> None:
    ImportRequirement.objects.filter(
        sales_order=order, status=ImportRequirement.STATUS_PENDING
    ).delete()

    for shortage in shortages:
        ImportRequirement.objects.create(
            product_id=shortage["product_id"],
            sales_order=order,
            required_quantity=shortage["required_quantity"],
            shortage_quantity=shortage["shortage_quantity"],
            status=ImportRequirement.STATUS_PENDING,
            notes=f"Shortage for {order.order_number}",
        )


# ============================================================
# RELEASE
# ============================================================


@transaction.atomic
def release_reservation(order, product, quantity, batch=None, *, created_by: str = "") -> int:
    """
    Release up to `quantity` units reserved for order + product (+ batch),
    oldest reservation first. Returns the quantity actually released.
    """
    remaining = _to_int_qty(quantity)
    if remaining == 0:
        return 0

    qs = StockReservation.objects.select_for_update().filter(
        sales_order_id=getattr(order, "pk", order),
        product_id=getattr(product, "pk", product),
        status=StockReservation.STATUS_ACTIVE,
    )
    if batch is not None:
        qs = qs.filter(batch_id=getattr(batch, "pk", batch))

    released = 0
    for reservation in qs.order_by("created_at", "id"):
        if remaining <= 0:
            break

        take = min(reservation.reserved_quantity, remaining)
        if take == reservation.reserved_quantity:
            reservation.status = StockReservation.STATUS_RELEASED
            reservation.released_at = timezone.now()
        else:
            reservation.reserved_quantity -= take
        reservation.save()

        InventoryTransaction.objects.create(
            product_id=reservation.product_id,
            batch_id=reservation.batch_id,
            transaction_type=InventoryTransaction.TransactionType.RELEASE,
            quantity=take,
            reference_type=REFERENCE_SALES_ORDER,
            reference_id=str(reservation.sales_order_id),
            created_by=created_by or "",
        )
        remaining -= take
        released += take

    return released


@transaction.atomic
def release_all_reservations(order, *, created_by: str = "") -> int:
    released = 0
    for reservation in StockReservation.objects.select_for_update().filter(
        sales_order_id=getattr(order, "pk", order), status=StockReservation.STATUS_ACTIVE
    ):
        released += reservation.reserved_quantity
        reservation.status = StockReservation.STATUS_RELEASED
        reservation.released_at = timezone.now()
        reservation.save()

        InventoryTransaction.objects.create(
            product_id=reservation.product_id,
            batch_id=reservation.batch_id,
            transaction_type=InventoryTransaction.TransactionType.RELEASE,
            quantity=reservation.reserved_quantity,
            reference_type=REFERENCE_SALES_ORDER,
            reference_id=str(reservation.sales_order_id),
            notes="release all",
            created_by=created_by or "",
        )
    return released


@transaction.atomic
def restore_reservation(order, product, batch, quantity, *, created_by: str = "") -> int:
    """
    Re-reserve units a deleted delivery line had consumed, capped by the
    batch's free stock. Returns the quantity reserved again.
    """
    wanted = _to_int_qty(quantity)
    if wanted == 0:
        return 0

    batch = Batch.objects.select_for_update().get(pk=getattr(batch, "pk", batch))
    take = min(wanted, max(batch.free_stock, 0))
    if take == 0:
        return 0

    order_id = getattr(order, "pk", order)
    product_id = getattr(product, "pk", product)
    item = (
        SalesOrder.objects.get(pk=order_id).items.filter(product_id=product_id).order_by("id").first()
    )

    StockReservation.objects.create(
        sales_order_id=order_id,
        sales_order_item=item,
        product_id=product_id,
        batch=batch,
        reserved_quantity=take,
    )
    InventoryTransaction.objects.create(
        product_id=product_id,
        batch_id=batch.pk,
        transaction_type=InventoryTransaction.TransactionType.RESERVATION,
        quantity=take,
        reference_type=REFERENCE_SALES_ORDER,
        reference_id=str(order_id),
        notes="restored from deleted delivery challan",
        created_by=created_by or "",
    )
    return take


def has_active_reservations(order) -> bool:
    return StockReservation.objects.filter(
        sales_order_id=getattr(order, "pk", order), status=StockReservation.STATUS_ACTIVE
    ).exists()
