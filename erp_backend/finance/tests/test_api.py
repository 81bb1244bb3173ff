# finance/tests/test_api.py

from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.models import JournalEntry
from accounting.tests.helpers import entry_for, seed_chart
from finance.models import FinanceExpense, FundTransfer, PettyCashTransaction


class FinanceApiTests(TestCase):
    def setUp(self):
        seed_chart()
        self.admin = User.objects.create_superuser("finance", "finance@example.com", "pass1234")
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

    def test_expense_create_posts_and_stamps_user(self):
        res = self.client.post(
            "/api/finance/expenses/",
            {
                "expense_date": "2026-01-10",
                "expense_category": "salary",
                "amount": "250.00",
                "payment_method": "cash",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["created_by"], "finance")

        expense = FinanceExpense.objects.get(pk=res.data["id"])
        self.assertIsNotNone(entry_for(JournalEntry.SOURCE_EXPENSE, expense.ledger_reference))

    def test_model_validation_becomes_400(self):
        res = self.client.post(
            "/api/finance/expenses/",
            {
                "expense_date": "2026-01-10",
                "expense_category": "salary",
                "amount": "-5.00",
                "payment_method": "cash",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 400)
        self.assertFalse(FinanceExpense.objects.exists())

    def test_petty_cash_mirror_is_read_only(self):
        expense = FinanceExpense.objects.create(
            expense_date="2026-01-10",
            expense_category="office_supplies",
            amount=Decimal("40.00"),
            payment_method="petty_cash",
        )
        expense.refresh_from_db()
        mirror_id = expense.petty_cash_transaction_id

        res = self.client.delete(f"/api/finance/petty-cash/{mirror_id}/")
        self.assertEqual(res.status_code, 400)
        self.assertTrue(PettyCashTransaction.objects.filter(pk=mirror_id).exists())

    def test_fund_transfer_cancel_removes_entry(self):
        res = self.client.post(
            "/api/finance/fund-transfers/",
            {
                "transfer_date": "2026-02-01",
                "from_account_type": "cash_on_hand",
                "to_account_type": "petty_cash",
                "from_amount": "300.00",
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        transfer = FundTransfer.objects.get(pk=res.data["id"])
        self.assertEqual(transfer.status, FundTransfer.STATUS_POSTED)

        res = self.client.post(f"/api/finance/fund-transfers/{transfer.pk}/cancel/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], FundTransfer.STATUS_CANCELLED)
        self.assertIsNone(entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number))
