# accounting/services/reports.py

"""
======================================================
PATH: accounting/services/reports.py
======================================================
LEDGER REPORTS

- unposted_documents(): documents a posting trigger skipped (missing account, bad rule)
- ppn_report(year): monthly PPN input vs output
- trial_balance(as_of): debit / credit totals per active account
- unbalanced_entries(): audit list of entries whose stored lines disagree

All money values are Decimals quantized to 0.01; the API layer serializes them.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db.models import DecimalField, F, Q, Sum, Value
from django.db.models.functions import Coalesce, ExtractMonth

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import JournalEntryLine

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(amount) -> Decimal:
    return Decimal(amount or 0).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# UNPOSTED DOCUMENTS
# ============================================================


def _rows(document_type, queryset, *, number, date, amount="amount"):
    out = []
    for doc in queryset:
        out.append(
            {
                "document_type": document_type,
                "id": doc.pk,
                "number": number(doc) if callable(number) else getattr(doc, number),
                "date": getattr(doc, date),
                "amount": _q2(getattr(doc, amount)),
            }
        )
    return out


def unposted_documents() -> list[dict]:
    from finance.models import (
        FinanceExpense,
        FundTransfer,
        PaymentVoucher,
        PettyCashTransaction,
        ReceiptVoucher,
    )
    from purchases.models import PurchaseInvoice
    from sales.models import SalesInvoice

    rows = []
    rows += _rows(
        "expense",
        FinanceExpense.objects.filter(journal_entry__isnull=True).order_by("expense_date", "id"),
        number=lambda e: e.ledger_reference,
        date="expense_date",
    )
    rows += _rows(
        "receipt_voucher",
        ReceiptVoucher.objects.filter(journal_entry__isnull=True).order_by("voucher_date", "id"),
        number="voucher_number",
        date="voucher_date",
    )
    rows += _rows(
        "payment_voucher",
        PaymentVoucher.objects.filter(journal_entry__isnull=True).order_by("voucher_date", "id"),
        number="voucher_number",
        date="voucher_date",
    )
    rows += _rows(
        "fund_transfer",
        FundTransfer.objects.filter(journal_entry__isnull=True)
        .exclude(status=FundTransfer.STATUS_CANCELLED)
        .order_by("transfer_date", "id"),
        number="transfer_number",
        date="transfer_date",
        amount="from_amount",
    )
    rows += _rows(
        "petty_cash",
        PettyCashTransaction.objects.filter(
            journal_entry__isnull=True, finance_expense__isnull=True
        ).order_by("transaction_date", "id"),
        number="transaction_number",
        date="transaction_date",
    )
    rows += _rows(
        "sales_invoice",
        SalesInvoice.objects.filter(
            journal_entry__isnull=True, status__in=SalesInvoice.POSTABLE_STATUSES
        ).order_by("invoice_date", "id"),
        number="invoice_number",
        date="invoice_date",
        amount="total_amount",
    )
    rows += _rows(
        "purchase_invoice",
        PurchaseInvoice.objects.filter(
            journal_entry__isnull=True, status__in=PurchaseInvoice.POSTABLE_STATUSES
        ).order_by("invoice_date", "id"),
        number="invoice_number",
        date="invoice_date",
        amount="total_amount",
    )
    return rows


# ============================================================
# PPN (VAT) REPORT
# ============================================================


def ppn_report(year: int) -> list[dict]:
    """
    input_ppn  = ppn_import expenses (recoverable input tax paid at customs)
    output_ppn = tax_amount of postable sales invoices
    net_ppn    = output - input (positive = payable)
    """
    from finance.models import FinanceExpense
    from sales.models import SalesInvoice

    input_by_month = dict(
        FinanceExpense.objects.filter(expense_category="ppn_import", expense_date__year=year)
        .annotate(month=ExtractMonth("expense_date"))
        .values("month")
        .annotate(total=Sum("amount"))
        .order_by()
        .values_list("month", "total")
    )
    output_by_month = dict(
        SalesInvoice.objects.filter(
            status__in=SalesInvoice.POSTABLE_STATUSES, invoice_date__year=year
        )
        .annotate(month=ExtractMonth("invoice_date"))
        .values("month")
        .annotate(total=Sum("tax_amount"))
        .order_by()
        .values_list("month", "total")
    )

    report = []
    for month in range(1, 13):
        input_ppn = _q2(input_by_month.get(month))
        output_ppn = _q2(output_by_month.get(month))
        report.append(
            {
                "month": month,
                "input_ppn": input_ppn,
                "output_ppn": output_ppn,
                "net_ppn": output_ppn - input_ppn,
            }
        )
    return report


# ============================================================
# TRIAL BALANCE
# ============================================================


def trial_balance(as_of=None) -> dict:
    line_filter = Q(journal_lines__journal_entry__is_posted=True)
    if as_of is not None:
        line_filter &= Q(journal_lines__journal_entry__entry_date__lte=as_of)

    money = DecimalField(max_digits=18, decimal_places=2)
    accounts = (
        Account.objects.filter(is_active=True)
        .annotate(
            debit=Coalesce(Sum("journal_lines__debit", filter=line_filter), Value(ZERO), output_field=money),
            credit=Coalesce(Sum("journal_lines__credit", filter=line_filter), Value(ZERO), output_field=money),
        )
        .filter(Q(debit__gt=0) | Q(credit__gt=0))
        .order_by("code")
    )

    rows = []
    total_debit = ZERO
    total_credit = ZERO
    for acc in accounts:
        debit, credit = _q2(acc.debit), _q2(acc.credit)
        rows.append(
            {
                "account_id": acc.pk,
                "account_code": acc.code,
                "account_name": acc.name,
                "debit": debit,
                "credit": credit,
            }
        )
        total_debit += debit
        total_credit += credit

    return {
        "as_of": as_of,
        "accounts": rows,
        "totals": {
            "debit": _q2(total_debit),
            "credit": _q2(total_credit),
            "balanced": total_debit == total_credit,
        },
    }


# ============================================================
# AUDIT
# ============================================================


def unbalanced_entries():
    """Posted entries whose stored lines (not the cached totals) do not balance."""
    money = DecimalField(max_digits=18, decimal_places=2)
    return (
        JournalEntry.objects.filter(is_posted=True)
        .annotate(
            line_debit=Coalesce(Sum("lines__debit"), Value(ZERO), output_field=money),
            line_credit=Coalesce(Sum("lines__credit"), Value(ZERO), output_field=money),
        )
        .exclude(line_debit=F("line_credit"))
        .order_by("entry_date", "id")
    )
