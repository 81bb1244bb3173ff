# PATH: accounting/services/account_resolver.py

"""
PATH: accounting/services/account_resolver.py

ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which account should be used for this purpose?"

Every posting routine goes through here. Receipt and payment vouchers, expenses,
transfers and petty cash all resolve cash/bank identically, so a bank account's
linked COA is honoured everywhere (or nowhere).

Design goals:
- deterministic
- table-driven (semantic key -> code, expense category -> code), no if/else ladders
- hard-fail with AccountResolutionError on missing setup; the posting wrapper turns
  that into a logged skip so the business document still saves
"""

from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# SEMANTIC CODES
# ------------------------------------------------------------

ACCOUNT_CODES = {
    "CASH_ON_HAND": "1101",
    "PETTY_CASH": "1102",
    "BANK": "1111",
    "AR": "1120",
    "INVENTORY": "1130",
    "PPN_INPUT": "1150",
    "FIXED_ASSET": "1200",
    "ACCOUNTS_PAYABLE": "2110",
    "TAX_PAYABLE": "2130",
    "PPH_PAYABLE": "2132",
    "SALES_REVENUE": "4100",
    "COGS": "5100",
    "MISC_EXPENSE": "6900",
    "OPERATING_EXPENSE": "6000",
}

# ------------------------------------------------------------
# EXPENSE CATEGORY MAP
# ------------------------------------------------------------

EXPENSE_CATEGORY_CODES = {
    # People
    "salary": "6100",
    "employee_benefits": "6110",
    "staff_welfare": "6150",
    # Premises
    "rent": "6200",
    "warehouse_rent": "6210",
    "office_rent": "6220",
    # Utilities
    "utilities": "6300",
    "electricity": "6310",
    "water": "6320",
    "internet_phone": "6330",
    # Office
    "office_supplies": "6400",
    "office_admin": "6410",
    "office_shifting_renovation": "6420",
    # Vehicles / travel
    "fuel": "6500",
    "vehicle_maintenance": "6500",
    "travel_conveyance": "6500",
    # Selling
    "delivery_sales": "6510",
    "loading_sales": "6520",
    "marketing_advertising": "6600",
    # Professional
    "legal_professional": "6700",
    "consulting_fees": "6700",
    "accounting_audit": "6700",
    "bpom_ski_fees": "6710",
    # Finance
    "bank_charges": "7100",
    "interest_expense": "7200",
    # Import (P&L side when not capitalized to a container)
    "duty_import": "5200",
    "freight_import": "5300",
    "other_import": "5400",
    # Recoverable import VAT
    "ppn_import": "1150",
}

FALLBACK_EXPENSE_CODES = ("6900", "6000")

# Payment methods shared by expenses, vouchers and petty cash
PAYMENT_CASH = "cash"
PAYMENT_PETTY_CASH = "petty_cash"
PAYMENT_BANK_TRANSFER = "bank_transfer"


# ------------------------------------------------------------
# INTERNAL RESOLUTION HELPERS
# ------------------------------------------------------------


def _resolve_code(*, semantic_key: str) -> str:
    semantic_key = (semantic_key or "").strip().upper()
    if not semantic_key:
        raise AccountResolutionError("semantic_key is required")

    code = (ACCOUNT_CODES.get(semantic_key) or "").strip()
    if not code:
        raise AccountResolutionError(
            f"Missing mapping for semantic key '{semantic_key}'. Update ACCOUNT_CODES."
        )
    return code


def find_account_by_code(code: str) -> Account | None:
    code = (code or "").strip()
    if not code:
        return None
    return Account.objects.filter(code=code, is_active=True).first()


def get_account_by_code(code: str) -> Account:
    code = (code or "").strip()
    if not code:
        raise AccountResolutionError("Account code is required")

    try:
        return Account.objects.get(code=code, is_active=True)
    except ObjectDoesNotExist as exc:
        raise AccountResolutionError(
            f"Account with code={code} not found (or inactive). "
            "Run `manage.py seed_import_chart` (or add the account) and ensure is_active=True."
        ) from exc


def get_semantic_account(semantic_key: str) -> Account:
    return get_account_by_code(_resolve_code(semantic_key=semantic_key))


def _usable(account: Account | None) -> Account | None:
    if account is None or not account.is_active:
        return None
    return account


# ------------------------------------------------------------
# PUBLIC RESOLVERS
# ------------------------------------------------------------


def get_cash_account() -> Account:
    return get_semantic_account("CASH_ON_HAND")


def get_petty_cash_account() -> Account:
    return get_semantic_account("PETTY_CASH")


def get_bank_account() -> Account:
    return get_semantic_account("BANK")


def get_accounts_receivable_account() -> Account:
    return get_semantic_account("AR")


def get_inventory_account() -> Account:
    return get_semantic_account("INVENTORY")


def get_ppn_input_account() -> Account:
    return get_semantic_account("PPN_INPUT")


def get_fixed_asset_account() -> Account:
    return get_semantic_account("FIXED_ASSET")


def get_accounts_payable_account() -> Account:
    return get_semantic_account("ACCOUNTS_PAYABLE")


def get_tax_payable_account() -> Account:
    return get_semantic_account("TAX_PAYABLE")


def get_pph_payable_account() -> Account:
    return get_semantic_account("PPH_PAYABLE")


def get_sales_revenue_account() -> Account:
    return get_semantic_account("SALES_REVENUE")


def get_cogs_account() -> Account:
    return get_semantic_account("COGS")


def expense_code_for_category(category: str | None) -> str | None:
    """Mapped code, or None when the category falls through to the fallback account."""
    return EXPENSE_CATEGORY_CODES.get((category or "").strip().lower())


def resolve_expense_account(category: str | None) -> Account:
    """
    Category -> expense account.

    Unmapped categories (or a mapped code missing from the chart) fall back to
    Miscellaneous 6900, then Operating Expenses 6000.
    """
    code = expense_code_for_category(category)
    if code:
        account = find_account_by_code(code)
        if account is not None:
            return account
        logger.warning(
            "Expense category %r maps to missing account %s; using fallback", category, code
        )

    for fallback in FALLBACK_EXPENSE_CODES:
        account = find_account_by_code(fallback)
        if account is not None:
            return account

    raise AccountResolutionError(
        f"No expense account for category {category!r} and no fallback "
        f"({', '.join(FALLBACK_EXPENSE_CODES)}) in the chart."
    )


def resolve_bank_coa(bank_account) -> Account:
    """A bank account's linked COA, or the generic bank account when unlinked."""
    linked = _usable(getattr(bank_account, "coa_account", None)) if bank_account else None
    return linked or get_bank_account()


def resolve_payment_account(payment_method: str | None, bank_account=None) -> Account:
    """
    cash -> Cash on Hand, petty_cash -> Petty Cash,
    bank_transfer -> the bank account's linked COA (fallback generic Bank),
    None/blank -> Accounts Payable (unpaid liability).
    """
    method = (payment_method or "").strip().lower()

    if not method:
        return get_accounts_payable_account()
    if method == PAYMENT_PETTY_CASH:
        return get_petty_cash_account()
    if method == PAYMENT_BANK_TRANSFER:
        return resolve_bank_coa(bank_account)
    if method != PAYMENT_CASH:
        logger.warning("Unknown payment_method %r; treating as cash", payment_method)
    return get_cash_account()
