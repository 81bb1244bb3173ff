# accounting/tests/test_reports.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.services.reports import ppn_report, trial_balance, unposted_documents
from accounting.tests.helpers import seed_chart
from finance.models import FinanceExpense, FundTransfer, PettyCashTransaction
from inventory.models import Product
from sales.models import Customer, SalesInvoice
from sales.services.invoice_service import create_sales_invoice

D = Decimal


class ReportTests(TestCase):
    def setUp(self):
        seed_chart()
        self.customer = Customer.objects.create(code="C001", name="Apotek Sehat")
        self.product = Product.objects.create(sku="AMX-500", name="Amoxicillin 500mg")

    def _invoice(self, *, on, tax, status=SalesInvoice.STATUS_UNPAID):
        return create_sales_invoice(
            customer=self.customer,
            items=[{"product": self.product, "quantity": 10, "unit_price": D("200.00")}],
            tax_amount=tax,
            invoice_date=on,
            status=status,
        )

    def test_ppn_report_nets_output_against_import_vat(self):
        FinanceExpense.objects.create(
            expense_date=date(2026, 1, 8), expense_category="ppn_import", amount=D("110.00")
        )
        self._invoice(on=date(2026, 1, 20), tax=D("220.00"))
        self._invoice(on=date(2026, 2, 2), tax=D("99.00"), status=SalesInvoice.STATUS_DRAFT)
        self._invoice(on=date(2025, 1, 2), tax=D("50.00"))

        report = ppn_report(2026)

        self.assertEqual(len(report), 12)
        january, february = report[0], report[1]
        self.assertEqual(january["input_ppn"], D("110.00"))
        self.assertEqual(january["output_ppn"], D("220.00"))
        self.assertEqual(january["net_ppn"], D("110.00"))
        self.assertEqual(february["output_ppn"], D("0.00"))
        self.assertTrue(all(row["net_ppn"] == D("0.00") for row in report[2:]))

    def test_trial_balance_balances(self):
        FinanceExpense.objects.create(
            expense_date=date(2026, 1, 8), expense_category="salary", amount=D("100.00")
        )
        self._invoice(on=date(2026, 1, 20), tax=D("220.00"))

        tb = trial_balance()

        self.assertTrue(tb["totals"]["balanced"])
        self.assertEqual(tb["totals"]["debit"], D("2320.00"))
        by_code = {row["account_code"]: row for row in tb["accounts"]}
        self.assertEqual(by_code["1120"]["debit"], D("2220.00"))
        self.assertEqual(by_code["4100"]["credit"], D("2000.00"))
        self.assertEqual(by_code["2130"]["credit"], D("220.00"))
        self.assertNotIn("1200", by_code)

    def test_trial_balance_as_of_excludes_later_entries(self):
        FinanceExpense.objects.create(
            expense_date=date(2026, 1, 8), expense_category="salary", amount=D("100.00")
        )
        FinanceExpense.objects.create(
            expense_date=date(2026, 3, 8), expense_category="salary", amount=D("40.00")
        )

        tb = trial_balance(as_of=date(2026, 1, 31))

        self.assertEqual(tb["totals"]["debit"], D("100.00"))

    def test_unposted_documents_skips_mirrors_cancelled_and_drafts(self):
        self._invoice(on=date(2026, 1, 20), tax=D("0.00"), status=SalesInvoice.STATUS_DRAFT)
        FinanceExpense.objects.create(
            expense_category="salary", amount=D("10.00"), payment_method="petty_cash"
        )
        transfer = FundTransfer.objects.create(
            from_account_type=FundTransfer.ENDPOINT_CASH_ON_HAND,
            to_account_type=FundTransfer.ENDPOINT_PETTY_CASH,
            from_amount=D("5.00"),
        )
        transfer.refresh_from_db()
        transfer.status = FundTransfer.STATUS_CANCELLED
        transfer.save()

        self.assertTrue(PettyCashTransaction.objects.exists())
        self.assertEqual(unposted_documents(), [])
