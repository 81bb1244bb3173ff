# sales/services/delivery_service.py

"""
======================================================
PATH: sales/services/delivery_service.py
======================================================
DELIVERY CHALLAN WORKFLOW

Deduct-once rule:
- item added     -> release the order's matching reservations (no stock change)
- challan approved -> deduct Batch.current_stock exactly once per line
- challan deleted  -> give stock back (if approved) and restore the reservations

Concurrency:
- Every batch touched is locked with select_for_update before its counter moves.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from inventory.models import Batch, InventoryTransaction
from inventory.services.exceptions import InsufficientStockError
from inventory.services.reservation_service import (
    has_active_reservations,
    release_reservation,
    restore_reservation,
)
from inventory.services.stock_counters import recompute_product_stock
from sales.models import DeliveryChallan, DeliveryChallanItem, SalesOrder
from sales.services.exceptions import SalesWorkflowError

logger = logging.getLogger(__name__)

REFERENCE_DELIVERY_CHALLAN = "delivery_challan"


def _set_order_status(order_id, status: str) -> None:
    SalesOrder.objects.filter(pk=order_id).update(status=status, updated_at=timezone.now())


# ============================================================
# ITEM ADDED (reservation release only)
# ============================================================


@transaction.atomic
def release_for_delivery_item(item: DeliveryChallanItem, *, created_by: str = "") -> int:
    """
    Release reservations matching order + product + batch for a new challan line.
    Marks the order delivered once nothing stays reserved.
    """
    challan = item.delivery_challan
    if not challan.sales_order_id:
        return 0

    order = SalesOrder.objects.select_for_update().get(pk=challan.sales_order_id)
    released = release_reservation(
        order, item.product_id, item.quantity, batch=item.batch_id, created_by=created_by
    )
    DeliveryChallanItem.objects.filter(pk=item.pk).update(released_quantity=released)
    item.released_quantity = released

    if order.status in SalesOrder.OPEN_STATUSES and not has_active_reservations(order):
        _set_order_status(order.pk, SalesOrder.STATUS_DELIVERED)
        logger.info("Sales order %s fully delivered via %s", order.order_number, challan.challan_number)

    return released


@transaction.atomic
def add_delivery_item(challan, *, product, batch, quantity, sales_order_item=None) -> DeliveryChallanItem:
    if challan.is_approved:
        raise SalesWorkflowError(f"Delivery challan {challan.challan_number} is already approved")

    # the post_save receiver releases the reservations
    return DeliveryChallanItem.objects.create(
        delivery_challan=challan,
        product=product,
        batch=batch,
        quantity=quantity,
        sales_order_item=sales_order_item,
    )


@transaction.atomic
def create_delivery_challan(
    *,
    customer,
    items: list[dict],
    sales_order=None,
    challan_date=None,
    notes: str = "",
    created_by: str = "",
) -> DeliveryChallan:
    """Draft challan plus its lines; each line releases matching reservations."""
    if not items:
        raise SalesWorkflowError("A delivery challan needs at least one item")
    if sales_order is not None and sales_order.status == SalesOrder.STATUS_CANCELLED:
        raise SalesWorkflowError(f"Sales order {sales_order.order_number} is cancelled")

    challan = DeliveryChallan(
        customer=customer,
        sales_order=sales_order,
        notes=notes or "",
        created_by=created_by or "",
    )
    if challan_date:
        challan.challan_date = challan_date
    challan.save()

    for row in items:
        add_delivery_item(
            challan,
            product=row["product"],
            batch=row["batch"],
            quantity=row["quantity"],
            sales_order_item=row.get("sales_order_item"),
        )
    return challan


# ============================================================
# APPROVAL (the ONLY stock deduction)
# ============================================================


@transaction.atomic
def approve_delivery_challan(challan, *, created_by: str = "") -> DeliveryChallan:
    challan = DeliveryChallan.objects.select_for_update().get(pk=getattr(challan, "pk", challan))

    if challan.is_approved:
        return challan

    items = list(challan.items.all().order_by("id"))
    if not items:
        raise SalesWorkflowError(f"Delivery challan {challan.challan_number} has no items")

    product_ids = set()
    for item in items:
        batch = Batch.objects.select_for_update().get(pk=item.batch_id)

        if item.quantity > batch.free_stock:
            raise InsufficientStockError(
                f"Batch {batch.batch_number}: requested {item.quantity}, "
                f"available {max(batch.free_stock, 0)}"
            )

        Batch.objects.filter(pk=batch.pk).update(current_stock=F("current_stock") - item.quantity)
        InventoryTransaction.objects.create(
            product_id=item.product_id,
            batch_id=batch.pk,
            transaction_type=InventoryTransaction.TransactionType.SALE,
            quantity=-item.quantity,
            reference_type=REFERENCE_DELIVERY_CHALLAN,
            reference_id=str(challan.pk),
            created_by=created_by or "",
        )
        product_ids.add(item.product_id)

    recompute_product_stock(product_ids)

    DeliveryChallan.objects.filter(pk=challan.pk).update(
        status=DeliveryChallan.STATUS_APPROVED,
        approved_at=timezone.now(),
    )
    challan.refresh_from_db()

    logger.info("Approved delivery challan %s (%s line(s))", challan.challan_number, len(items))
    return challan


# ============================================================
# DELETION (full undo)
# ============================================================


@transaction.atomic
def delete_delivery_challan(challan, *, created_by: str = "") -> None:
    challan = DeliveryChallan.objects.select_for_update().get(pk=getattr(challan, "pk", challan))
    items = list(challan.items.all().order_by("id"))

    if challan.is_approved:
        product_ids = set()
        for item in items:
            Batch.objects.select_for_update().filter(pk=item.batch_id).update(
                current_stock=F("current_stock") + item.quantity
            )
            InventoryTransaction.objects.create(
                product_id=item.product_id,
                batch_id=item.batch_id,
                transaction_type=InventoryTransaction.TransactionType.RETURN,
                quantity=item.quantity,
                reference_type=REFERENCE_DELIVERY_CHALLAN,
                reference_id=str(challan.pk),
                notes=f"{challan.challan_number} deleted",
                created_by=created_by or "",
            )
            product_ids.add(item.product_id)
        recompute_product_stock(product_ids)

    order = None
    if challan.sales_order_id:
        order = SalesOrder.objects.select_for_update().get(pk=challan.sales_order_id)

    if order is not None and order.status != SalesOrder.STATUS_CANCELLED:
        for item in items:
            if item.released_quantity:
                restore_reservation(
                    order,
                    item.product_id,
                    item.batch_id,
                    item.released_quantity,
                    created_by=created_by,
                )

    number = challan.challan_number
    challan.delete()

    if order is not None and order.status == SalesOrder.STATUS_DELIVERED:
        _set_order_status(order.pk, SalesOrder.STATUS_STOCK_RESERVED)

    logger.info("Deleted delivery challan %s", number)
