# accounting/tests/helpers.py

"""
Shared fixtures for ledger-facing tests.

seed_chart() runs the real seeding command, so tests exercise the same
chart (codes, parents, types) that a fresh deployment gets.
"""

from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.db.models import Sum

from accounting.models.account import Account
from accounting.models.journal import JournalEntry


def seed_chart() -> None:
    call_command("seed_import_chart", stdout=StringIO())


def account(code: str) -> Account:
    return Account.objects.get(code=code)


def entry_for(source_module: str, reference_number: str) -> JournalEntry | None:
    return JournalEntry.objects.filter(
        source_module=source_module, reference_number=reference_number
    ).first()


def lines_by_code(entry: JournalEntry) -> dict[str, tuple[Decimal, Decimal]]:
    """account code -> (debit, credit) summed over the entry's lines."""
    rows = (
        entry.lines.values("account__code")
        .annotate(d=Sum("debit"), c=Sum("credit"))
        .order_by()
    )
    return {r["account__code"]: (r["d"], r["c"]) for r in rows}


def assert_balanced(testcase, entry: JournalEntry) -> None:
    agg = entry.lines.aggregate(d=Sum("debit"), c=Sum("credit"))
    testcase.assertEqual(agg["d"], agg["c"])
    testcase.assertEqual(entry.total_debit, agg["d"])
    testcase.assertEqual(entry.total_credit, agg["c"])
