# sales/services/order_service.py

"""
======================================================
PATH: sales/services/order_service.py
======================================================
SALES ORDER WORKFLOW

Transitions:
    draft          -> approve -> stock_reserved | shortage | delivered
    stock_reserved -> reserve (re-run), cancel, update items
    shortage       -> reserve (re-run, e.g. after new stock), cancel, update items
    delivered / cancelled are terminal

Stock is never touched here directly: reservation rows come from
inventory.services.reservation_service.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from imports.models import ImportRequirement
from inventory.services.reservation_service import (
    release_all_reservations,
    reserve_stock_for_order,
)
from sales.models import SalesOrder, SalesOrderItem
from sales.services.exceptions import InvalidOrderTransitionError, SalesWorkflowError

logger = logging.getLogger(__name__)

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    SalesOrder.STATUS_DELIVERED,
    SalesOrder.STATUS_CANCELLED,
}

ALLOWED_ACTIONS = {
    "approve": {SalesOrder.STATUS_DRAFT},
    "reserve": {SalesOrder.STATUS_STOCK_RESERVED, SalesOrder.STATUS_SHORTAGE},
    "cancel": {
        SalesOrder.STATUS_DRAFT,
        SalesOrder.STATUS_STOCK_RESERVED,
        SalesOrder.STATUS_SHORTAGE,
    },
    "update_items": {
        SalesOrder.STATUS_DRAFT,
        SalesOrder.STATUS_STOCK_RESERVED,
        SalesOrder.STATUS_SHORTAGE,
    },
}


def validate_action(*, order: SalesOrder, action: str) -> None:
    if order.status not in ALLOWED_ACTIONS.get(action, set()):
        raise InvalidOrderTransitionError(
            f"Sales order {order.order_number} cannot {action.replace('_', ' ')} "
            f"from '{order.status}'"
        )


def _lock(order) -> SalesOrder:
    return SalesOrder.objects.select_for_update().get(pk=getattr(order, "pk", order))


# ============================================================
# COMMANDS
# ============================================================


@transaction.atomic
def create_sales_order(*, customer, items: list[dict], order_date=None, notes="", created_by="") -> SalesOrder:
    if not items:
        raise SalesWorkflowError("A sales order needs at least one item")

    order = SalesOrder(customer=customer, notes=notes or "", created_by=created_by or "")
    if order_date:
        order.order_date = order_date
    order.save()

    _write_items(order, items)
    return order


def _write_items(order: SalesOrder, items: list[dict]) -> None:
    for row in items:
        SalesOrderItem.objects.create(
            sales_order=order,
            product=row["product"],
            quantity=row["quantity"],
            unit_price=row.get("unit_price") or 0,
        )


@transaction.atomic
def approve_sales_order(order, *, created_by: str = "") -> dict:
    order = _lock(order)
    validate_action(order=order, action="approve")

    SalesOrder.objects.filter(pk=order.pk).update(approved_at=timezone.now())
    result = reserve_stock_for_order(order, created_by=created_by)

    logger.info("Approved sales order %s -> %s", order.order_number, result["status"])
    return result


@transaction.atomic
def rerun_reservation(order, *, created_by: str = "") -> dict:
    order = _lock(order)
    validate_action(order=order, action="reserve")
    return reserve_stock_for_order(order, created_by=created_by)


@transaction.atomic
def cancel_sales_order(order, *, created_by: str = "") -> SalesOrder:
    order = _lock(order)
    validate_action(order=order, action="cancel")

    released = release_all_reservations(order, created_by=created_by)
    ImportRequirement.objects.filter(
        sales_order=order, status=ImportRequirement.STATUS_PENDING
    ).update(status=ImportRequirement.STATUS_CANCELLED)

    SalesOrder.objects.filter(pk=order.pk).update(
        status=SalesOrder.STATUS_CANCELLED,
        cancelled_at=timezone.now(),
    )
    order.refresh_from_db()

    logger.info("Cancelled sales order %s (released %s units)", order.order_number, released)
    return order


@transaction.atomic
def update_sales_order_items(order, items: list[dict], *, created_by: str = "") -> SalesOrder:
    """
    Replace all lines. An order that already holds reservations gets a
    full reservation re-run so the reservation table matches the new lines.
    """
    order = _lock(order)
    validate_action(order=order, action="update_items")

    if not items:
        raise SalesWorkflowError("A sales order needs at least one item")

    was_reserved = order.status in SalesOrder.OPEN_STATUSES
    if was_reserved:
        release_all_reservations(order, created_by=created_by)

    order.items.all().delete()
    _write_items(order, items)

    if was_reserved:
        reserve_stock_for_order(order, created_by=created_by)

    order.refresh_from_db()
    return order
