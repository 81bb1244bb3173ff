# accounting/services/posting_invoices.py

"""
======================================================
PATH: accounting/services/posting_invoices.py
======================================================
INVOICE POSTING RECIPES

Sales invoice:
    Dr Accounts Receivable      total
        Cr Sales Revenue        subtotal
        Cr Tax Payable (PPN)    tax
    + per batch with a known cost basis:
    Dr COGS / Cr Inventory      quantity * batch.unit_cost

Purchase invoice:
    Dr Inventory / Asset / Expense per line
    Dr PPN Input                tax
        Cr Accounts Payable     total

Convergence rule (sync_*_posting):
- not postable (draft / cancelled)  -> remove the entry
- postable                          -> remove + re-post from the current rows
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal

from accounting.models.journal import JournalEntry
from accounting.services.account_resolver import (
    get_accounts_payable_account,
    get_accounts_receivable_account,
    get_cogs_account,
    get_fixed_asset_account,
    get_inventory_account,
    get_ppn_input_account,
    get_sales_revenue_account,
    get_tax_payable_account,
    resolve_expense_account,
)
from accounting.services.exceptions import PostingRuleError
from accounting.services.posting import (
    post_once,
    posting_enabled,
    run_posting,
    unpost_document,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# SALES INVOICE
# ============================================================


def _cogs_by_batch(invoice) -> "OrderedDict[int, Decimal]":
    costs: OrderedDict[int, Decimal] = OrderedDict()
    for item in invoice.items.select_related("batch").order_by("id"):
        batch = item.batch
        if batch is None or batch.unit_cost is None:
            continue
        cost = _money(Decimal(item.quantity) * Decimal(batch.unit_cost))
        if cost > 0:
            costs[batch.pk] = costs.get(batch.pk, Decimal("0.00")) + cost
    return costs


def post_sales_invoice(invoice) -> JournalEntry:
    if not invoice.is_postable:
        raise PostingRuleError(f"Sales invoice {invoice.invoice_number} is {invoice.status}")

    def build():
        subtotal = _money(invoice.subtotal_amount)
        tax = _money(invoice.tax_amount)
        total = subtotal + tax
        if total <= 0:
            raise PostingRuleError(f"Sales invoice {invoice.invoice_number} has no amount")

        customer_id = invoice.customer_id
        lines = [
            {
                "account": get_accounts_receivable_account(),
                "debit": total,
                "description": f"Invoice {invoice.invoice_number}",
                "customer_id": customer_id,
            }
        ]
        if subtotal > 0:
            lines.append(
                {
                    "account": get_sales_revenue_account(),
                    "credit": subtotal,
                    "description": "Sales revenue",
                    "customer_id": customer_id,
                }
            )
        if tax > 0:
            lines.append(
                {
                    "account": get_tax_payable_account(),
                    "credit": tax,
                    "description": "PPN output",
                    "customer_id": customer_id,
                }
            )

        costs = _cogs_by_batch(invoice)
        if costs:
            cogs, inventory = get_cogs_account(), get_inventory_account()
            for batch_id, cost in costs.items():
                lines.append(
                    {"account": cogs, "debit": cost, "description": "Cost of goods sold", "batch_id": batch_id}
                )
                lines.append(
                    {"account": inventory, "credit": cost, "description": "Inventory out", "batch_id": batch_id}
                )

        return {
            "entry_date": invoice.invoice_date,
            "description": f"Sales invoice {invoice.invoice_number}",
            "lines": lines,
        }

    return post_once(invoice, source_module=JournalEntry.SOURCE_SALES_INVOICE, build=build)


def sync_sales_invoice_posting(invoice):
    if not posting_enabled():
        return None
    if not invoice.is_postable:
        unpost_document(invoice, source_module=JournalEntry.SOURCE_SALES_INVOICE)
        return None
    return run_posting(
        post_sales_invoice,
        invoice,
        source_module=JournalEntry.SOURCE_SALES_INVOICE,
        replace=True,
    )


# ============================================================
# PURCHASE INVOICE
# ============================================================


def _purchase_line_account(item):
    if item.item_type == item.TYPE_INVENTORY:
        return get_inventory_account()
    if item.item_type == item.TYPE_ASSET:
        return item.asset_account if item.asset_account_id else get_fixed_asset_account()
    if item.item_type == item.TYPE_EXPENSE:
        if item.expense_account_id:
            return item.expense_account
        return resolve_expense_account(item.expense_category)
    raise PostingRuleError(f"Unknown purchase item type {item.item_type!r}")


def post_purchase_invoice(invoice) -> JournalEntry:
    if not invoice.is_postable:
        raise PostingRuleError(f"Purchase invoice {invoice.invoice_number} is {invoice.status}")
    if not invoice.is_complete:
        raise PostingRuleError(
            f"Purchase invoice {invoice.invoice_number}: items + tax "
            f"({invoice.items_total} + {_money(invoice.tax_amount)}) != total {_money(invoice.total_amount)}"
        )

    def build():
        total = _money(invoice.total_amount)
        if total <= 0:
            raise PostingRuleError(f"Purchase invoice {invoice.invoice_number} has no amount")

        supplier_id = invoice.supplier_id
        lines = []
        for item in invoice.items.select_related("product", "asset_account", "expense_account"):
            amount = _money(item.line_total)
            if amount <= 0:
                continue
            label = getattr(item.product, "name", None) or item.description or item.item_type
            lines.append(
                {
                    "account": _purchase_line_account(item),
                    "debit": amount,
                    "description": label,
                    "supplier_id": supplier_id,
                    "batch_id": item.batch_id,
                }
            )

        tax = _money(invoice.tax_amount)
        if tax > 0:
            lines.append(
                {
                    "account": get_ppn_input_account(),
                    "debit": tax,
                    "description": "PPN input",
                    "supplier_id": supplier_id,
                }
            )

        lines.append(
            {
                "account": get_accounts_payable_account(),
                "credit": total,
                "description": f"Supplier invoice {invoice.invoice_number}",
                "supplier_id": supplier_id,
            }
        )

        return {
            "entry_date": invoice.invoice_date,
            "description": f"Purchase invoice {invoice.invoice_number} ({invoice.supplier})",
            "lines": lines,
        }

    return post_once(invoice, source_module=JournalEntry.SOURCE_PURCHASE_INVOICE, build=build)


def sync_purchase_invoice_posting(invoice):
    if not posting_enabled():
        return None
    if not invoice.is_postable:
        unpost_document(invoice, source_module=JournalEntry.SOURCE_PURCHASE_INVOICE)
        return None
    if not invoice.is_complete:
        # header and items not reconciled yet; a later save converges
        unpost_document(invoice, source_module=JournalEntry.SOURCE_PURCHASE_INVOICE)
        logger.debug("Purchase invoice %s incomplete; posting deferred", invoice.pk)
        return None
    return run_posting(
        post_purchase_invoice,
        invoice,
        source_module=JournalEntry.SOURCE_PURCHASE_INVOICE,
        replace=True,
    )
