# finance/signals.py

"""
Posting triggers for cash-side documents.

Every receiver goes through run_posting(): a posting failure is logged and
never blocks the save. Derived writes (links, statuses) use queryset.update(),
so these receivers never re-enter themselves.
"""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from accounting.models import JournalEntry
from accounting.services.change_tracking import changed_fields, previous_values, remember_previous
from accounting.services.posting import (
    post_finance_expense,
    post_fund_transfer,
    post_payment_voucher,
    post_petty_cash_transaction,
    post_receipt_voucher,
    posting_enabled,
    run_posting,
    unpost_document,
)
from finance.models import (
    FinanceExpense,
    FundTransfer,
    PaymentVoucher,
    PettyCashTransaction,
    ReceiptVoucher,
)
from finance.services.expense_service import sync_petty_cash_mirror
from imports.services.cost_allocation import sync_container_costs_from_expenses

EXPENSE_POSTING_FIELDS = (
    "amount",
    "expense_category",
    "payment_method",
    "bank_account",
    "import_container",
    "expense_date",
)
RECEIPT_POSTING_FIELDS = (
    "amount",
    "payment_method",
    "bank_account",
    "coa_account",
    "voucher_date",
    "customer",
)
PAYMENT_POSTING_FIELDS = RECEIPT_POSTING_FIELDS[:-1] + ("supplier", "pph_amount")
TRANSFER_POSTING_FIELDS = (
    "from_account_type",
    "from_bank_account",
    "to_account_type",
    "to_bank_account",
    "from_amount",
    "to_amount",
    "transfer_date",
)
PETTY_CASH_POSTING_FIELDS = (
    "transaction_type",
    "amount",
    "expense_category",
    "bank_account",
    "transaction_date",
)
CONTAINER_ROLLUP_FIELDS = ("amount", "expense_category", "import_container")


def _post_or_repost(handler, instance, *, source_module, fields, created):
    """Insert -> post. Edit of a posting field -> remove + re-post. Else retry if unposted."""
    if created:
        return run_posting(handler, instance, source_module=source_module)
    if changed_fields(instance, fields):
        return run_posting(handler, instance, source_module=source_module, replace=True)
    if not instance.journal_entry_id:
        return run_posting(handler, instance, source_module=source_module)
    return None


def _remove_entry(instance, source_module):
    if posting_enabled():
        unpost_document(instance, source_module=source_module)


def _sync_linked_containers(instance, created):
    """Old and new container both get their expense-fed cost fields recomputed."""
    if created:
        if instance.import_container_id:
            sync_container_costs_from_expenses(instance.import_container_id, [instance.expense_category])
        return

    if not changed_fields(instance, CONTAINER_ROLLUP_FIELDS):
        return

    previous = previous_values(instance) or {}
    categories = {previous.get("expense_category"), instance.expense_category}
    for container_id in {previous.get("import_container"), instance.import_container_id} - {None}:
        sync_container_costs_from_expenses(container_id, categories)


# ============================================================
# EXPENSES
# ============================================================


@receiver(pre_save, sender=FinanceExpense)
def remember_expense(sender, instance, **kwargs):
    remember_previous(instance, EXPENSE_POSTING_FIELDS)


@receiver(post_save, sender=FinanceExpense)
def expense_saved(sender, instance, created, **kwargs):
    if created or changed_fields(instance, ("payment_method", "amount", "expense_date", "expense_category")):
        sync_petty_cash_mirror(instance)

    _post_or_repost(
        post_finance_expense,
        instance,
        source_module=JournalEntry.SOURCE_EXPENSE,
        fields=EXPENSE_POSTING_FIELDS,
        created=created,
    )
    _sync_linked_containers(instance, created)


@receiver(post_delete, sender=FinanceExpense)
def expense_deleted(sender, instance, **kwargs):
    _remove_entry(instance, JournalEntry.SOURCE_EXPENSE)
    # the SET_NULL cascade already cleared the back-link, so go by the forward one
    if instance.petty_cash_transaction_id:
        PettyCashTransaction.objects.filter(pk=instance.petty_cash_transaction_id).delete()
    if instance.import_container_id:
        sync_container_costs_from_expenses(instance.import_container_id, [instance.expense_category])


# ============================================================
# VOUCHERS
# ============================================================


@receiver(pre_save, sender=ReceiptVoucher)
def remember_receipt(sender, instance, **kwargs):
    remember_previous(instance, RECEIPT_POSTING_FIELDS)


@receiver(post_save, sender=ReceiptVoucher)
def receipt_saved(sender, instance, created, **kwargs):
    _post_or_repost(
        post_receipt_voucher,
        instance,
        source_module=JournalEntry.SOURCE_RECEIPT,
        fields=RECEIPT_POSTING_FIELDS,
        created=created,
    )


@receiver(post_delete, sender=ReceiptVoucher)
def receipt_deleted(sender, instance, **kwargs):
    _remove_entry(instance, JournalEntry.SOURCE_RECEIPT)


@receiver(pre_save, sender=PaymentVoucher)
def remember_payment(sender, instance, **kwargs):
    remember_previous(instance, PAYMENT_POSTING_FIELDS)


@receiver(post_save, sender=PaymentVoucher)
def payment_saved(sender, instance, created, **kwargs):
    _post_or_repost(
        post_payment_voucher,
        instance,
        source_module=JournalEntry.SOURCE_PAYMENT,
        fields=PAYMENT_POSTING_FIELDS,
        created=created,
    )


@receiver(post_delete, sender=PaymentVoucher)
def payment_deleted(sender, instance, **kwargs):
    _remove_entry(instance, JournalEntry.SOURCE_PAYMENT)


# ============================================================
# FUND TRANSFERS
# ============================================================


@receiver(pre_save, sender=FundTransfer)
def remember_transfer(sender, instance, **kwargs):
    remember_previous(instance, TRANSFER_POSTING_FIELDS + ("status",))


@receiver(post_save, sender=FundTransfer)
def transfer_saved(sender, instance, created, **kwargs):
    if instance.status == FundTransfer.STATUS_CANCELLED:
        _remove_entry(instance, JournalEntry.SOURCE_FUND_TRANSFER)
        return

    _post_or_repost(
        post_fund_transfer,
        instance,
        source_module=JournalEntry.SOURCE_FUND_TRANSFER,
        fields=TRANSFER_POSTING_FIELDS,
        created=created,
    )


@receiver(post_delete, sender=FundTransfer)
def transfer_deleted(sender, instance, **kwargs):
    _remove_entry(instance, JournalEntry.SOURCE_FUND_TRANSFER)


# ============================================================
# PETTY CASH
# ============================================================


@receiver(pre_save, sender=PettyCashTransaction)
def remember_petty_cash(sender, instance, **kwargs):
    remember_previous(instance, PETTY_CASH_POSTING_FIELDS)


@receiver(post_save, sender=PettyCashTransaction)
def petty_cash_saved(sender, instance, created, **kwargs):
    if instance.is_expense_mirror:
        return

    _post_or_repost(
        post_petty_cash_transaction,
        instance,
        source_module=JournalEntry.SOURCE_PETTY_CASH,
        fields=PETTY_CASH_POSTING_FIELDS,
        created=created,
    )


@receiver(post_delete, sender=PettyCashTransaction)
def petty_cash_deleted(sender, instance, **kwargs):
    if not instance.is_expense_mirror:
        _remove_entry(instance, JournalEntry.SOURCE_PETTY_CASH)
