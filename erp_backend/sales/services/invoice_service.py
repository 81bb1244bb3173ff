# sales/services/invoice_service.py

"""
SALES INVOICE SERVICE

Creation order: header as draft -> items -> requested status.
The header is only posted once its items exist, so the ledger sees one
complete entry instead of an empty one followed by reposts.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from sales.models import SalesInvoice, SalesInvoiceItem
from sales.services.exceptions import SalesWorkflowError

TWOPLACES = Decimal("0.01")


def recompute_invoice_totals(invoice) -> dict:
    """subtotal = sum(line_total), total = subtotal + tax. Written with queryset.update()."""
    invoice_id = getattr(invoice, "pk", invoice)
    subtotal = (
        SalesInvoiceItem.objects.filter(invoice_id=invoice_id).aggregate(s=Sum("line_total"))["s"]
        or Decimal("0.00")
    )
    tax = SalesInvoice.objects.filter(pk=invoice_id).values_list("tax_amount", flat=True).first()
    totals = {
        "subtotal_amount": Decimal(subtotal).quantize(TWOPLACES),
        "total_amount": (Decimal(subtotal) + Decimal(tax or 0)).quantize(TWOPLACES),
    }
    SalesInvoice.objects.filter(pk=invoice_id).update(**totals)

    if isinstance(invoice, SalesInvoice):
        invoice.subtotal_amount = totals["subtotal_amount"]
        invoice.total_amount = totals["total_amount"]
    return totals


@transaction.atomic
def create_sales_invoice(
    *,
    customer,
    items: list[dict],
    tax_amount=Decimal("0.00"),
    status: str = SalesInvoice.STATUS_UNPAID,
    invoice_date=None,
    due_date=None,
    sales_order=None,
    delivery_challan=None,
    created_by: str = "",
) -> SalesInvoice:
    if not items:
        raise SalesWorkflowError("A sales invoice needs at least one item")

    invoice = SalesInvoice(
        customer=customer,
        tax_amount=tax_amount or Decimal("0.00"),
        status=SalesInvoice.STATUS_DRAFT,
        due_date=due_date,
        sales_order=sales_order,
        delivery_challan=delivery_challan,
        created_by=created_by or "",
    )
    if invoice_date:
        invoice.invoice_date = invoice_date
    invoice.save()

    for row in items:
        SalesInvoiceItem.objects.create(
            invoice=invoice,
            product=row["product"],
            batch=row.get("batch"),
            quantity=row["quantity"],
            unit_price=row["unit_price"],
        )

    if status != SalesInvoice.STATUS_DRAFT:
        set_invoice_status(invoice, status)

    invoice.refresh_from_db()
    return invoice


@transaction.atomic
def set_invoice_status(invoice, status: str) -> SalesInvoice:
    """Plain save(): the post_save receiver posts / removes the ledger entry."""
    valid = {choice for choice, _ in SalesInvoice.STATUS_CHOICES}
    if status not in valid:
        raise SalesWorkflowError(f"Unknown invoice status {status!r}")

    invoice = SalesInvoice.objects.select_for_update().get(pk=invoice.pk)
    invoice.status = status
    invoice.save()
    return invoice
