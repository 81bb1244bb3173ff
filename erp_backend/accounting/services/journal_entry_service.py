# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry / JournalEntryLine
- Delete them (correction = remove + re-post, never mutate amounts)
- Enforce debit == credit
- Guarantee atomicity (all lines of one entry commit together or not at all)
- Enforce idempotency via (source_module, reference_number)

Totals rule:
- total_debit / total_credit are recomputed from the stored lines after insert,
  not trusted from the caller.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.ledger import JournalEntryLine
from accounting.services.exceptions import (
    IdempotencyError,
    JournalEntryCreationError,
)
from accounting.services.numbering import next_document_number

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
MIN_LINE_AMOUNT = Decimal("0.01")


def _money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise JournalEntryCreationError(f"Invalid money value: {value!r}") from exc

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _optional_id(value):
    if value is None or value == "":
        return None
    return int(getattr(value, "pk", value))


def find_existing_entry(*, source_module: str, reference_number: str | None) -> JournalEntry | None:
    ref = (reference_number or "").strip()
    if not ref:
        return None
    return JournalEntry.objects.filter(source_module=source_module, reference_number=ref).first()


def _normalize_lines(lines: list) -> list[dict]:
    if not lines:
        raise JournalEntryCreationError("Journal entry must contain at least one line")

    normalized: list[dict] = []

    for line in lines:
        if not isinstance(line, dict):
            raise JournalEntryCreationError("Each line must be an object/dict")

        account = line.get("account")
        if account is None:
            raise JournalEntryCreationError("Line missing account")

        if not getattr(account, "is_active", True):
            raise JournalEntryCreationError(
                f"Account {getattr(account, 'code', 'UNKNOWN')} is inactive"
            )

        debit = _money(line.get("debit"))
        credit = _money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise JournalEntryCreationError("Debit or credit cannot be negative")

        if debit > 0 and credit > 0:
            raise JournalEntryCreationError("A line cannot have both debit and credit")

        if debit == 0 and credit == 0:
            raise JournalEntryCreationError("A line must have either debit or credit")

        if 0 < debit < MIN_LINE_AMOUNT or 0 < credit < MIN_LINE_AMOUNT:
            raise JournalEntryCreationError("Line amount too small")

        normalized.append(
            {
                "account": account,
                "debit": debit,
                "credit": credit,
                "description": str(line.get("description") or "")[:255],
                "customer_id": _optional_id(line.get("customer_id")),
                "supplier_id": _optional_id(line.get("supplier_id")),
                "batch_id": _optional_id(line.get("batch_id")),
            }
        )

    return normalized


@transaction.atomic
def create_journal_entry(
    *,
    entry_date: date | None,
    source_module: str,
    description: str,
    lines: list,
    reference_id=None,
    reference_number: str | None = None,
    created_by: str = "",
) -> JournalEntry:
    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")

    source_module = (source_module or "").strip()
    if not source_module:
        raise JournalEntryCreationError("source_module is required")

    normalized = _normalize_lines(lines)

    total_debits = sum((l["debit"] for l in normalized), Decimal("0.00"))
    total_credits = sum((l["credit"] for l in normalized), Decimal("0.00"))

    if total_debits != total_credits:
        raise JournalEntryCreationError(
            f"Journal entry not balanced: debits={total_debits} credits={total_credits}"
        )

    reference_number = (reference_number or "").strip()
    entry_date = entry_date or timezone.localdate()

    # Clear error before DB constraint race handling
    if find_existing_entry(source_module=source_module, reference_number=reference_number):
        raise IdempotencyError(
            f"Journal entry already exists for {source_module}:{reference_number}"
        )

    entry_number = next_document_number("JE", on=entry_date)

    try:
        with transaction.atomic():
            journal_entry = JournalEntry.objects.create(
                entry_number=entry_number,
                entry_date=entry_date,
                source_module=source_module,
                reference_id=str(reference_id or ""),
                reference_number=reference_number,
                description=description,
                is_posted=True,
                created_by=created_by or "",
            )
    except (IntegrityError, ValidationError):
        if find_existing_entry(source_module=source_module, reference_number=reference_number):
            raise IdempotencyError(
                f"Journal entry already exists for {source_module}:{reference_number}"
            )
        # entry_number collision: abort the whole originating transaction
        raise

    JournalEntryLine.objects.bulk_create(
        [
            JournalEntryLine(
                journal_entry=journal_entry,
                line_number=index,
                **line,
            )
            for index, line in enumerate(normalized, start=1)
        ]
    )

    totals = recompute_entry_totals(journal_entry)
    if totals["total_debit"] != totals["total_credit"]:
        raise JournalEntryCreationError(
            f"Journal entry {entry_number} not balanced after insert: {totals}"
        )

    logger.info(
        "Posted %s (%s %s) Dr=Cr=%s",
        entry_number,
        source_module,
        reference_number or reference_id,
        totals["total_debit"],
    )
    return journal_entry


def recompute_entry_totals(journal_entry: JournalEntry) -> dict:
    agg = JournalEntryLine.objects.filter(journal_entry=journal_entry).aggregate(
        d=Sum("debit"), c=Sum("credit")
    )
    totals = {
        "total_debit": _money(agg["d"]),
        "total_credit": _money(agg["c"]),
    }
    JournalEntry.objects.filter(pk=journal_entry.pk).update(**totals)
    journal_entry.total_debit = totals["total_debit"]
    journal_entry.total_credit = totals["total_credit"]
    return totals


@transaction.atomic
def remove_journal_entry(journal_entry: JournalEntry | None) -> bool:
    """
    Delete an entry and its lines. Documents linked through a SET_NULL
    foreign key lose the link in the same statement.
    """
    if journal_entry is None:
        return False

    pk = journal_entry.pk
    JournalEntryLine.objects.filter(journal_entry_id=pk).delete()
    deleted, _ = JournalEntry.objects.filter(pk=pk).delete()

    if deleted:
        logger.info("Removed journal entry %s for re-posting", journal_entry.entry_number)
    return bool(deleted)
