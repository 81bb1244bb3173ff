# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER

Map business documents -> balanced journal entries and call
create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (signals and services decide WHEN to post).
- It DOES decide WHAT to post (one recipe per document type).
- It ALWAYS goes through create_journal_entry for atomicity + idempotency.

Every source document exposes:
- journal_entry (SET_NULL FK)      -> primary idempotency check
- ledger_reference (str property)  -> secondary lookup on JournalEntry.reference_number

NON-FATAL RULE:
- Triggers call run_posting(), never a recipe directly. A missing account or a
  broken posting rule is logged and the business document still saves; the
  "unposted documents" report surfaces it later.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.services.account_resolver import (
    get_accounts_payable_account,
    get_accounts_receivable_account,
    get_cash_account,
    get_inventory_account,
    get_petty_cash_account,
    get_pph_payable_account,
    resolve_bank_coa,
    resolve_expense_account,
    resolve_payment_account,
)
from accounting.services.exceptions import (
    AccountingServiceError,
    IdempotencyError,
    PostingRuleError,
)
from accounting.services.journal_entry_service import (
    create_journal_entry,
    find_existing_entry,
    remove_journal_entry,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


# ============================================================
# LINKING / IDEMPOTENCY HELPERS
# ============================================================


def _link(document, journal_entry: JournalEntry) -> None:
    # queryset update: no save() -> no signal -> no re-entry into the trigger
    type(document).objects.filter(pk=document.pk).update(journal_entry=journal_entry)
    document.journal_entry = journal_entry


def find_posted_entry(document, *, source_module: str) -> JournalEntry | None:
    """FK first, then the reference lookup (covers entries orphaned by a lost link)."""
    if document.journal_entry_id:
        entry = JournalEntry.objects.filter(pk=document.journal_entry_id).first()
        if entry is not None:
            return entry
    return find_existing_entry(
        source_module=source_module,
        reference_number=document.ledger_reference,
    )


def post_once(document, *, source_module: str, build) -> JournalEntry:
    """
    Idempotent posting skeleton shared by every recipe.

    build() returns the create_journal_entry kwargs; it only runs when nothing
    is posted yet, so account resolution errors surface only for real work.
    """
    existing = find_posted_entry(document, source_module=source_module)
    if existing is not None:
        if document.journal_entry_id != existing.pk:
            _link(document, existing)
        return existing

    try:
        entry = create_journal_entry(
            source_module=source_module,
            reference_id=document.pk,
            reference_number=document.ledger_reference,
            created_by=getattr(document, "created_by", "") or "",
            **build(),
        )
    except IdempotencyError:
        # Lost a race with another posting path: adopt the winner's entry
        entry = find_existing_entry(
            source_module=source_module, reference_number=document.ledger_reference
        )
        if entry is None:
            raise

    _link(document, entry)
    return entry


def unpost_document(document, *, source_module: str) -> bool:
    """
    Correction path: delete the entry (and any orphan with the same reference),
    clear the link. The caller re-runs the recipe afterwards if needed.
    """
    removed = False
    entry = find_posted_entry(document, source_module=source_module)
    while entry is not None:
        removed = remove_journal_entry(entry) or removed
        entry = find_existing_entry(
            source_module=source_module, reference_number=document.ledger_reference
        )

    document.journal_entry = None
    return removed


# ============================================================
# NON-FATAL WRAPPER
# ============================================================


def posting_enabled() -> bool:
    return bool(getattr(settings, "ACCOUNTING_POSTING_ENABLED", True))


def run_posting(handler, document, *, source_module: str, replace: bool = False):
    """
    Try-post, log-on-failure.

    - replace=True removes the current entry first (edit of a posted document);
      the removal is kept even when the re-post fails, so a stale entry never
      survives an edit.
    - The handler runs in a savepoint: a failed posting leaves no partial lines
      and does not roll back the business write.
    - IntegrityError and other database errors are NOT caught.
    """
    if not posting_enabled():
        return None

    if replace:
        unpost_document(document, source_module=source_module)

    try:
        with transaction.atomic():
            return handler(document)
    except AccountingServiceError as exc:
        logger.warning(
            "Posting skipped for %s id=%s (%s): %s",
            source_module,
            document.pk,
            getattr(document, "ledger_reference", ""),
            exc,
        )
        return None


# ============================================================
# EXPENSES
# ============================================================


def post_finance_expense(expense) -> JournalEntry:
    """
    Capitalized (container)  Dr Inventory        Cr Cash/Bank/PettyCash/AP
    P&L                      Dr mapped expense   Cr Cash/Bank/PettyCash/AP
    """

    def build():
        amount = _money(expense.amount)
        if expense.is_capitalized:
            debit_account = get_inventory_account()
            narrative = f"Import cost ({expense.expense_category})"
        else:
            debit_account = resolve_expense_account(expense.expense_category)
            narrative = f"Expense ({expense.expense_category})"

        credit_account = resolve_payment_account(expense.payment_method, expense.bank_account)

        description = f"{narrative} {expense.ledger_reference}"
        if expense.description:
            description = f"{description}: {expense.description}"

        return {
            "entry_date": expense.expense_date,
            "description": description,
            "lines": [
                {"account": debit_account, "debit": amount, "description": narrative},
                {
                    "account": credit_account,
                    "credit": amount,
                    "description": expense.payment_method or "unpaid",
                },
            ],
        }

    return post_once(expense, source_module=JournalEntry.SOURCE_EXPENSE, build=build)


# ============================================================
# VOUCHERS
# ============================================================


def post_receipt_voucher(voucher) -> JournalEntry:
    """Dr Cash/Bank (the specific account)  Cr Accounts Receivable (or override)."""

    def build():
        amount = _money(voucher.amount)
        cash_side = resolve_payment_account(voucher.payment_method, voucher.bank_account)
        counter = voucher.coa_account if voucher.coa_account_id else get_accounts_receivable_account()

        return {
            "entry_date": voucher.voucher_date,
            "description": f"Receipt voucher {voucher.voucher_number}",
            "lines": [
                {
                    "account": cash_side,
                    "debit": amount,
                    "description": voucher.description or "Receipt",
                    "customer_id": voucher.customer_id,
                },
                {
                    "account": counter,
                    "credit": amount,
                    "description": voucher.description or "Receipt",
                    "customer_id": voucher.customer_id,
                },
            ],
        }

    return post_once(voucher, source_module=JournalEntry.SOURCE_RECEIPT, build=build)


def post_payment_voucher(voucher) -> JournalEntry:
    """Dr Accounts Payable (or override)  Cr PPh withheld (if any) + Cr Cash/Bank net."""

    def build():
        amount = _money(voucher.amount)
        pph = _money(voucher.pph_amount)
        counter = voucher.coa_account if voucher.coa_account_id else get_accounts_payable_account()
        cash_side = resolve_payment_account(voucher.payment_method, voucher.bank_account)

        lines = [
            {
                "account": counter,
                "debit": amount,
                "description": voucher.description or "Payment",
                "supplier_id": voucher.supplier_id,
            }
        ]
        if pph > 0:
            lines.append(
                {
                    "account": get_pph_payable_account(),
                    "credit": pph,
                    "description": "PPh withheld",
                    "supplier_id": voucher.supplier_id,
                }
            )
        lines.append(
            {
                "account": cash_side,
                "credit": amount - pph,
                "description": voucher.description or "Payment",
                "supplier_id": voucher.supplier_id,
            }
        )

        return {
            "entry_date": voucher.voucher_date,
            "description": f"Payment voucher {voucher.voucher_number}",
            "lines": lines,
        }

    return post_once(voucher, source_module=JournalEntry.SOURCE_PAYMENT, build=build)


# ============================================================
# FUND TRANSFERS
# ============================================================


def _transfer_endpoint_account(kind: str, bank_account):
    from finance.models import FundTransfer

    if kind == FundTransfer.ENDPOINT_PETTY_CASH:
        return get_petty_cash_account()
    if kind == FundTransfer.ENDPOINT_CASH_ON_HAND:
        return get_cash_account()
    if kind == FundTransfer.ENDPOINT_BANK:
        return resolve_bank_coa(bank_account)
    raise PostingRuleError(f"Unknown fund transfer endpoint {kind!r}")


def functional_amount(transfer) -> Decimal:
    """The side denominated in the functional currency; from_amount when neither is."""
    functional = getattr(settings, "FUNCTIONAL_CURRENCY", "IDR")
    if transfer.from_currency != functional and transfer.to_currency == functional:
        return _money(transfer.to_amount)
    return _money(transfer.from_amount)


def _mark_transfer_posted(transfer, entry: JournalEntry) -> None:
    from finance.models import BankStatementLine, FundTransfer

    posted_at = transfer.posted_at or timezone.now()
    FundTransfer.objects.filter(pk=transfer.pk).update(
        status=FundTransfer.STATUS_POSTED, posted_at=posted_at
    )
    transfer.status = FundTransfer.STATUS_POSTED
    transfer.posted_at = posted_at

    line_ids = [i for i in (transfer.from_statement_line_id, transfer.to_statement_line_id) if i]
    if line_ids:
        BankStatementLine.objects.filter(pk__in=line_ids).update(
            reconciliation_status=BankStatementLine.STATUS_MATCHED,
            matched_transfer=transfer,
        )


def post_fund_transfer(transfer) -> JournalEntry:
    """
    Dr To-account  Cr From-account, both for the functional-currency amount.

    Cross-currency transfers carry the foreign amounts in the line narratives;
    the FX difference is reconciled manually.
    """
    from finance.models import FundTransfer

    if transfer.status == FundTransfer.STATUS_CANCELLED:
        raise PostingRuleError(f"Fund transfer {transfer.transfer_number} is cancelled")

    def build():
        amount = functional_amount(transfer)
        from_account = _transfer_endpoint_account(
            transfer.from_account_type, transfer.from_bank_account
        )
        to_account = _transfer_endpoint_account(transfer.to_account_type, transfer.to_bank_account)

        number = transfer.transfer_number
        description = f"Fund Transfer {number}"
        if transfer.is_cross_currency:
            description = f"{description} (FX: {transfer.from_currency} → {transfer.to_currency})"
        if transfer.description:
            description = f"{description} - {transfer.description}"

        return {
            "entry_date": transfer.transfer_date,
            "description": description,
            "lines": [
                {
                    "account": to_account,
                    "debit": amount,
                    "description": (
                        f"Transfer In: {number} ({transfer.to_currency} {_money(transfer.to_amount)})"
                    ),
                },
                {
                    "account": from_account,
                    "credit": amount,
                    "description": (
                        f"Transfer Out: {number} ({transfer.from_currency} {_money(transfer.from_amount)})"
                    ),
                },
            ],
        }

    entry = post_once(transfer, source_module=JournalEntry.SOURCE_FUND_TRANSFER, build=build)
    _mark_transfer_posted(transfer, entry)
    return entry


# ============================================================
# PETTY CASH
# ============================================================


def post_petty_cash_transaction(txn) -> JournalEntry | None:
    """
    top_up              Dr Petty Cash       Cr Bank (source account, generic bank if none)
    standalone expense  Dr mapped expense   Cr Petty Cash

    Rows mirroring a FinanceExpense are posted by the expense; nothing here.
    """
    from finance.models import PettyCashTransaction

    if txn.is_expense_mirror:
        logger.debug("Petty cash %s mirrors an expense; not posted", txn.transaction_number)
        return None

    def build():
        amount = _money(txn.amount)
        petty_cash = get_petty_cash_account()

        if txn.transaction_type == PettyCashTransaction.TYPE_TOP_UP:
            debit_account, credit_account = petty_cash, resolve_bank_coa(txn.bank_account)
            narrative = "Petty cash top-up"
        elif txn.transaction_type == PettyCashTransaction.TYPE_EXPENSE:
            debit_account = resolve_expense_account(txn.expense_category)
            credit_account = petty_cash
            narrative = f"Petty cash expense ({txn.expense_category or 'uncategorized'})"
        else:
            raise PostingRuleError(f"Unknown petty cash type {txn.transaction_type!r}")

        return {
            "entry_date": txn.transaction_date,
            "description": f"{narrative} {txn.transaction_number}",
            "lines": [
                {"account": debit_account, "debit": amount, "description": txn.description or narrative},
                {"account": credit_account, "credit": amount, "description": txn.description or narrative},
            ],
        }

    return post_once(txn, source_module=JournalEntry.SOURCE_PETTY_CASH, build=build)
