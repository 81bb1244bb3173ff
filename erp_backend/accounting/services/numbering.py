# accounting/services/numbering.py

"""
======================================================
PATH: accounting/services/numbering.py
======================================================
DOCUMENT NUMBERING SERVICE

Generates collision-free, gap-tolerant sequential numbers:

    JE<YYMM>-NNNN        journal entries
    FT<YY><MM>-NNNN      fund transfers
    PC-<YYYYMMDD>-NNNN   petty cash transactions
    RV / PV<YYMM>-NNNN   receipt / payment vouchers
    SO / DC / INV<YYMM>-NNNN  sales documents

Algorithm:
- Take a transaction-scoped lock keyed by the prefix
  (PostgreSQL: pg_advisory_xact_lock(hashtext('doc_number_' || prefix));
   other backends: SELECT ... FOR UPDATE on a DocumentSequence row)
- MAX of the numeric suffix of existing numbers with that prefix, + 1
  (never COUNT: deletions would make COUNT hand out an existing number)

HARD RULE:
- Must run inside the transaction that inserts the numbered row, otherwise the
  lock is released before the insert and two writers can read the same MAX.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from django.apps import apps
from django.db import connection, transaction
from django.utils import timezone

from accounting.models.sequence import DocumentSequence
from accounting.services.exceptions import NumberingError

logger = logging.getLogger(__name__)

SUFFIX_WIDTH = 4


@dataclass(frozen=True)
class NumberFormat:
    model_label: str
    field: str
    date_pattern: str  # strftime pattern rendered into the prefix

    def prefix_for(self, kind: str, on: date) -> str:
        return f"{kind}{on.strftime(self.date_pattern)}-"


# ------------------------------------------------------------
# KIND REGISTRY
# ------------------------------------------------------------

NUMBER_FORMATS: dict[str, NumberFormat] = {
    "JE": NumberFormat("accounting.JournalEntry", "entry_number", "%y%m"),
    "FT": NumberFormat("finance.FundTransfer", "transfer_number", "%y%m"),
    "PC": NumberFormat("finance.PettyCashTransaction", "transaction_number", "-%Y%m%d"),
    "RV": NumberFormat("finance.ReceiptVoucher", "voucher_number", "%y%m"),
    "PV": NumberFormat("finance.PaymentVoucher", "voucher_number", "%y%m"),
    "SO": NumberFormat("sales.SalesOrder", "order_number", "%y%m"),
    "DC": NumberFormat("sales.DeliveryChallan", "challan_number", "%y%m"),
    "INV": NumberFormat("sales.SalesInvoice", "invoice_number", "%y%m"),
}


def _get_format(kind: str) -> NumberFormat:
    key = (kind or "").strip().upper()
    fmt = NUMBER_FORMATS.get(key)
    if fmt is None:
        raise NumberingError(f"Unknown document kind '{kind}'")
    return fmt


def build_prefix(kind: str, on: date | None = None) -> str:
    """Period prefix for kind on the given date, e.g. build_prefix("JE", date(2026, 1, 5)) == "JE2601-"."""
    fmt = _get_format(kind)
    return fmt.prefix_for(kind.strip().upper(), on or timezone.localdate())


def advisory_lock_key(prefix: str) -> str:
    return f"doc_number_{prefix}"


# ------------------------------------------------------------
# LOCKING
# ------------------------------------------------------------


def _acquire_prefix_lock(prefix: str) -> None:
    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s))",
                [advisory_lock_key(prefix)],
            )
        return

    seq, _ = DocumentSequence.objects.get_or_create(prefix=prefix)
    DocumentSequence.objects.select_for_update().get(pk=seq.pk)


# ------------------------------------------------------------
# MAX SCAN
# ------------------------------------------------------------


def _parse_suffix(number: str, prefix: str) -> int | None:
    tail = (number or "")[len(prefix):]
    if not tail.isdigit():
        return None
    return int(tail)


def current_max_suffix(kind: str, prefix: str) -> int:
    fmt = _get_format(kind)
    model = apps.get_model(fmt.model_label)

    existing = model.objects.filter(**{f"{fmt.field}__startswith": prefix}).values_list(
        fmt.field, flat=True
    )

    highest = 0
    for number in existing:
        value = _parse_suffix(number, prefix)
        if value is not None and value > highest:
            highest = value
    return highest


# ------------------------------------------------------------
# PUBLIC API
# ------------------------------------------------------------


def next_document_number(
    kind: str,
    period_prefix: str | None = None,
    *,
    on: date | None = None,
) -> str:
    """
    Next number for kind. period_prefix overrides the date-derived prefix
    (it must still belong to kind, e.g. "JE2601-").
    """
    if not connection.in_atomic_block:
        raise NumberingError(
            "next_document_number() must be called inside transaction.atomic() "
            "together with the insert of the numbered row."
        )

    kind = (kind or "").strip().upper()
    prefix = (period_prefix or "").strip() or build_prefix(kind, on)
    if not prefix.startswith(kind):
        raise NumberingError(f"Prefix '{prefix}' does not belong to kind '{kind}'")

    _acquire_prefix_lock(prefix)

    value = current_max_suffix(kind, prefix) + 1
    if connection.vendor != "postgresql":
        DocumentSequence.objects.filter(prefix=prefix).update(last_value=value)

    number = f"{prefix}{value:0{SUFFIX_WIDTH}d}"
    logger.debug("Allocated document number %s", number)
    return number


def assign_number(instance, kind: str, *, on: date | None = None) -> str:
    """
    Fill the numbered field of an unsaved model instance if it is blank.
    Called from model.save() inside transaction.atomic().
    """
    fmt = _get_format(kind)
    current = (getattr(instance, fmt.field, "") or "").strip()
    if current:
        return current

    number = next_document_number(kind, on=on)
    setattr(instance, fmt.field, number)
    return number


@transaction.atomic
def preview_next_number(kind: str, *, on: date | None = None) -> str:
    """Non-binding preview for UIs (the lock is released when this returns)."""
    return next_document_number(kind, on=on)
