# finance/services/expense_service.py

"""
PETTY-CASH MIRROR FOR EXPENSES

A FinanceExpense paid from petty cash gets one PettyCashTransaction of type
"expense", cross-linked both ways:

    FinanceExpense.petty_cash_transaction  <->  PettyCashTransaction.finance_expense

The mirror row is never posted itself (the expense entry already credits
Petty Cash); it exists so the petty-cash book shows the outflow.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.services.account_resolver import PAYMENT_PETTY_CASH
from finance.models import FinanceExpense, PettyCashTransaction

logger = logging.getLogger(__name__)


def _mirror_description(expense: FinanceExpense) -> str:
    text = expense.description or expense.expense_category
    return f"{expense.ledger_reference}: {text}"[:255]


@transaction.atomic
def sync_petty_cash_mirror(expense: FinanceExpense) -> PettyCashTransaction | None:
    """Create, refresh or drop the mirror row to match the expense's payment method."""
    mirror = None
    if expense.petty_cash_transaction_id:
        mirror = PettyCashTransaction.objects.filter(pk=expense.petty_cash_transaction_id).first()

    if expense.payment_method != PAYMENT_PETTY_CASH:
        if mirror is not None:
            # SET_NULL clears expense.petty_cash_transaction in the same statement
            mirror.delete()
            logger.info("Dropped petty cash mirror for %s", expense.ledger_reference)
        expense.petty_cash_transaction = None
        return None

    if mirror is not None:
        PettyCashTransaction.objects.filter(pk=mirror.pk).update(
            amount=expense.amount,
            transaction_date=expense.expense_date,
            expense_category=expense.expense_category,
            description=_mirror_description(expense),
        )
        return mirror

    mirror = PettyCashTransaction.objects.create(
        transaction_type=PettyCashTransaction.TYPE_EXPENSE,
        transaction_date=expense.expense_date,
        amount=expense.amount,
        expense_category=expense.expense_category,
        description=_mirror_description(expense),
        finance_expense=expense,
        created_by=expense.created_by,
    )
    FinanceExpense.objects.filter(pk=expense.pk).update(petty_cash_transaction=mirror)
    expense.petty_cash_transaction = mirror
    return mirror
