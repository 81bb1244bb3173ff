# accounting/tests/test_account_resolver.py

from django.test import TestCase

from accounting.models.account import Account
from accounting.services.account_resolver import (
    EXPENSE_CATEGORY_CODES,
    resolve_bank_coa,
    resolve_expense_account,
    resolve_payment_account,
)
from accounting.services.exceptions import AccountResolutionError
from accounting.tests.helpers import account, seed_chart
from finance.models import BankAccount


class SeededChartTests(TestCase):
    def setUp(self):
        seed_chart()

    def test_seed_is_idempotent(self):
        count = Account.objects.count()
        seed_chart()
        self.assertEqual(Account.objects.count(), count)

    def test_parents_follow_leading_digit(self):
        self.assertEqual(account("1130").parent.code, "1000")
        self.assertEqual(account("6310").parent.code, "6000")
        self.assertIsNone(account("6000").parent)

    def test_normal_balance_defaults(self):
        self.assertEqual(account("1101").normal_balance, Account.DEBIT)
        self.assertEqual(account("6100").normal_balance, Account.DEBIT)
        self.assertEqual(account("2110").normal_balance, Account.CREDIT)
        self.assertEqual(account("4100").normal_balance, Account.CREDIT)

    def test_every_mapped_category_exists_in_chart(self):
        for category, code in EXPENSE_CATEGORY_CODES.items():
            self.assertEqual(resolve_expense_account(category).code, code, category)


class ExpenseResolutionTests(TestCase):
    def setUp(self):
        seed_chart()

    def test_category_lookup_is_case_insensitive(self):
        self.assertEqual(resolve_expense_account("  Electricity ").code, "6310")

    def test_unmapped_falls_back_to_miscellaneous(self):
        self.assertEqual(resolve_expense_account("team_offsite").code, "6900")

    def test_fallback_chain_then_error(self):
        Account.objects.filter(code="6900").update(is_active=False)
        self.assertEqual(resolve_expense_account("team_offsite").code, "6000")

        Account.objects.filter(code="6000").update(is_active=False)
        with self.assertRaises(AccountResolutionError):
            resolve_expense_account("team_offsite")

    def test_mapped_but_missing_code_uses_fallback(self):
        Account.objects.filter(code="6310").update(is_active=False)
        self.assertEqual(resolve_expense_account("electricity").code, "6900")


class CashSideResolutionTests(TestCase):
    def setUp(self):
        seed_chart()
        self.linked_coa = Account.objects.create(
            code="1112", name="Bank BCA IDR", account_type=Account.ASSET
        )
        self.linked = BankAccount.objects.create(
            name="BCA", account_number="001", coa_account=self.linked_coa
        )
        self.unlinked = BankAccount.objects.create(name="Mandiri", account_number="002")

    def test_bank_coa(self):
        self.assertEqual(resolve_bank_coa(self.linked), self.linked_coa)
        self.assertEqual(resolve_bank_coa(self.unlinked).code, "1111")
        self.assertEqual(resolve_bank_coa(None).code, "1111")

    def test_inactive_linked_coa_falls_back_to_generic_bank(self):
        self.linked_coa.is_active = False
        self.linked_coa.save()
        self.linked.refresh_from_db()
        self.assertEqual(resolve_bank_coa(self.linked).code, "1111")

    def test_payment_account_by_method(self):
        self.assertEqual(resolve_payment_account("cash").code, "1101")
        self.assertEqual(resolve_payment_account("petty_cash").code, "1102")
        self.assertEqual(resolve_payment_account("bank_transfer", self.linked), self.linked_coa)
        self.assertEqual(resolve_payment_account(None).code, "2110")
        self.assertEqual(resolve_payment_account("").code, "2110")

    def test_missing_semantic_account_raises(self):
        Account.objects.filter(code="1102").update(is_active=False)
        with self.assertRaises(AccountResolutionError):
            resolve_payment_account("petty_cash")
