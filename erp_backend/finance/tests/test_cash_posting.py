# finance/tests/test_cash_posting.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.reports import unposted_documents
from accounting.tests.helpers import assert_balanced, entry_for, lines_by_code, seed_chart
from finance.models import (
    BankAccount,
    BankStatementLine,
    FundTransfer,
    PaymentVoucher,
    PettyCashTransaction,
    ReceiptVoucher,
)
from purchases.models import Supplier
from sales.models import Customer

D = Decimal


class _ChartMixin:
    def setUp(self):
        seed_chart()
        self.idr_coa = Account.objects.create(code="1112", name="Bank BCA IDR", account_type=Account.ASSET)
        self.usd_coa = Account.objects.create(code="1113", name="Bank BCA USD", account_type=Account.ASSET)
        self.idr_bank = BankAccount.objects.create(
            name="BCA IDR", account_number="001", currency="IDR", coa_account=self.idr_coa
        )
        self.usd_bank = BankAccount.objects.create(
            name="BCA USD", account_number="002", currency="USD", coa_account=self.usd_coa
        )


class VoucherPostingTests(_ChartMixin, TestCase):
    def test_receipt_voucher_debits_the_bank_it_landed_in(self):
        customer = Customer.objects.create(code="C001", name="Apotek Sehat")
        voucher = ReceiptVoucher.objects.create(
            voucher_date=date(2026, 1, 5),
            amount=D("500.00"),
            bank_account=self.idr_bank,
            customer=customer,
        )

        self.assertTrue(voucher.voucher_number.startswith("RV2601-"))
        entry = entry_for(JournalEntry.SOURCE_RECEIPT, voucher.voucher_number)
        self.assertEqual(
            lines_by_code(entry),
            {"1112": (D("500.00"), D("0.00")), "1120": (D("0.00"), D("500.00"))},
        )
        self.assertEqual(set(entry.lines.values_list("customer_id", flat=True)), {customer.pk})

    def test_cash_receipt_without_bank_uses_cash_on_hand(self):
        voucher = ReceiptVoucher.objects.create(amount=D("75.00"), payment_method="cash")
        self.assertIn("1101", lines_by_code(entry_for(JournalEntry.SOURCE_RECEIPT, voucher.voucher_number)))

    def test_cash_receipt_without_cash_account_is_skipped(self):
        Account.objects.filter(code="1101").update(is_active=False)

        with self.assertLogs("accounting.services.posting", level="WARNING"):
            voucher = ReceiptVoucher.objects.create(amount=D("75.00"), payment_method="cash")

        voucher.refresh_from_db()
        self.assertIsNone(voucher.journal_entry_id)
        self.assertFalse(JournalEntry.objects.filter(source_module=JournalEntry.SOURCE_RECEIPT).exists())
        self.assertIn(
            ("receipt_voucher", voucher.pk),
            [(r["document_type"], r["id"]) for r in unposted_documents()],
        )

    def test_cash_voucher_rejects_bank_account(self):
        with self.assertRaises(ValidationError):
            ReceiptVoucher.objects.create(
                amount=D("75.00"), payment_method="cash", bank_account=self.idr_bank
            )
        with self.assertRaises(ValidationError):
            PaymentVoucher.objects.create(
                amount=D("75.00"), payment_method="cash", bank_account=self.idr_bank
            )

    def test_cash_payment_credits_cash_on_hand(self):
        voucher = PaymentVoucher.objects.create(amount=D("40.00"), payment_method="cash")
        self.assertEqual(
            lines_by_code(entry_for(JournalEntry.SOURCE_PAYMENT, voucher.voucher_number)),
            {"2110": (D("40.00"), D("0.00")), "1101": (D("0.00"), D("40.00"))},
        )

    def test_payment_voucher_withholds_pph(self):
        supplier = Supplier.objects.create(name="PT Farma")
        voucher = PaymentVoucher.objects.create(
            voucher_date=date(2026, 1, 6),
            amount=D("1000.00"),
            pph_amount=D("20.00"),
            supplier=supplier,
        )

        entry = entry_for(JournalEntry.SOURCE_PAYMENT, voucher.voucher_number)
        self.assertEqual(
            lines_by_code(entry),
            {
                "2110": (D("1000.00"), D("0.00")),
                "2132": (D("0.00"), D("20.00")),
                "1111": (D("0.00"), D("980.00")),
            },
        )
        assert_balanced(self, entry)
        self.assertEqual(voucher.net_amount, D("980.00"))

    def test_override_account_replaces_payable(self):
        override = Account.objects.get(code="2130")
        voucher = PaymentVoucher.objects.create(amount=D("10.00"), coa_account=override)
        self.assertIn("2130", lines_by_code(entry_for(JournalEntry.SOURCE_PAYMENT, voucher.voucher_number)))

    def test_editing_amount_reposts_once(self):
        voucher = ReceiptVoucher.objects.create(amount=D("100.00"))
        voucher.amount = D("120.00")
        voucher.save()

        entries = JournalEntry.objects.filter(reference_number=voucher.voucher_number)
        self.assertEqual(entries.count(), 1)
        self.assertEqual(entries.get().total_debit, D("120.00"))
        voucher.refresh_from_db()
        self.assertEqual(voucher.journal_entry_id, entries.get().pk)

    def test_delete_removes_entry(self):
        voucher = PaymentVoucher.objects.create(amount=D("10.00"))
        number = voucher.voucher_number
        voucher.delete()
        self.assertFalse(JournalEntry.objects.filter(reference_number=number).exists())


class FundTransferPostingTests(_ChartMixin, TestCase):
    def test_same_currency_transfer(self):
        transfer = FundTransfer.objects.create(
            transfer_date=date(2026, 2, 1),
            from_account_type=FundTransfer.ENDPOINT_BANK,
            from_bank_account=self.idr_bank,
            to_account_type=FundTransfer.ENDPOINT_PETTY_CASH,
            from_amount=D("250000.00"),
        )
        transfer.refresh_from_db()

        self.assertTrue(transfer.transfer_number.startswith("FT2602-"))
        self.assertEqual(transfer.to_amount, D("250000.00"))
        self.assertEqual(transfer.status, FundTransfer.STATUS_POSTED)
        self.assertIsNotNone(transfer.posted_at)

        entry = entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number)
        self.assertEqual(
            lines_by_code(entry),
            {"1102": (D("250000.00"), D("0.00")), "1112": (D("0.00"), D("250000.00"))},
        )

    def test_cross_currency_books_functional_amount(self):
        out_line = BankStatementLine.objects.create(
            bank_account=self.idr_bank, transaction_date=date(2026, 2, 3), debit=D("1000000.00")
        )
        in_line = BankStatementLine.objects.create(
            bank_account=self.usd_bank, transaction_date=date(2026, 2, 3), credit=D("65.00")
        )
        transfer = FundTransfer.objects.create(
            transfer_date=date(2026, 2, 3),
            from_account_type=FundTransfer.ENDPOINT_BANK,
            from_bank_account=self.idr_bank,
            to_account_type=FundTransfer.ENDPOINT_BANK,
            to_bank_account=self.usd_bank,
            from_amount=D("1000000.00"),
            to_amount=D("65.00"),
            from_statement_line=out_line,
            to_statement_line=in_line,
        )

        entry = entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number)
        self.assertIn("(FX: IDR → USD)", entry.description)
        self.assertEqual(
            lines_by_code(entry),
            {"1113": (D("1000000.00"), D("0.00")), "1112": (D("0.00"), D("1000000.00"))},
        )
        narratives = sorted(entry.lines.values_list("description", flat=True))
        self.assertEqual(
            narratives,
            [
                f"Transfer In: {transfer.transfer_number} (USD 65.00)",
                f"Transfer Out: {transfer.transfer_number} (IDR 1000000.00)",
            ],
        )

        for line in (out_line, in_line):
            line.refresh_from_db()
            self.assertEqual(line.reconciliation_status, BankStatementLine.STATUS_MATCHED)
            self.assertEqual(line.matched_transfer_id, transfer.pk)

    def test_foreign_to_functional_uses_destination_amount(self):
        transfer = FundTransfer.objects.create(
            from_account_type=FundTransfer.ENDPOINT_BANK,
            from_bank_account=self.usd_bank,
            to_account_type=FundTransfer.ENDPOINT_BANK,
            to_bank_account=self.idr_bank,
            from_amount=D("100.00"),
            to_amount=D("1550000.00"),
        )
        entry = entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number)
        self.assertEqual(entry.total_debit, D("1550000.00"))

    def test_cross_currency_requires_destination_amount(self):
        from django.core.exceptions import ValidationError

        with self.assertRaises(ValidationError):
            FundTransfer.objects.create(
                from_account_type=FundTransfer.ENDPOINT_BANK,
                from_bank_account=self.idr_bank,
                to_account_type=FundTransfer.ENDPOINT_BANK,
                to_bank_account=self.usd_bank,
                from_amount=D("100.00"),
            )

    def test_cancelling_removes_entry(self):
        transfer = FundTransfer.objects.create(
            from_account_type=FundTransfer.ENDPOINT_CASH_ON_HAND,
            to_account_type=FundTransfer.ENDPOINT_PETTY_CASH,
            from_amount=D("50.00"),
        )
        self.assertIsNotNone(entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number))

        transfer.refresh_from_db()
        transfer.status = FundTransfer.STATUS_CANCELLED
        transfer.save()

        self.assertIsNone(entry_for(JournalEntry.SOURCE_FUND_TRANSFER, transfer.transfer_number))
        transfer.refresh_from_db()
        self.assertIsNone(transfer.journal_entry_id)


class PettyCashPostingTests(_ChartMixin, TestCase):
    def test_top_up_from_bank(self):
        txn = PettyCashTransaction.objects.create(
            transaction_type=PettyCashTransaction.TYPE_TOP_UP,
            amount=D("300.00"),
            bank_account=self.idr_bank,
        )
        entry = entry_for(JournalEntry.SOURCE_PETTY_CASH, txn.transaction_number)
        self.assertEqual(
            lines_by_code(entry),
            {"1102": (D("300.00"), D("0.00")), "1112": (D("0.00"), D("300.00"))},
        )

    def test_standalone_expense(self):
        txn = PettyCashTransaction.objects.create(
            transaction_type=PettyCashTransaction.TYPE_EXPENSE,
            amount=D("12.50"),
            expense_category="Office_Supplies",
        )
        txn.refresh_from_db()

        self.assertEqual(txn.expense_category, "office_supplies")
        entry = entry_for(JournalEntry.SOURCE_PETTY_CASH, txn.transaction_number)
        self.assertEqual(txn.journal_entry_id, entry.pk)
        self.assertEqual(
            lines_by_code(entry),
            {"6400": (D("12.50"), D("0.00")), "1102": (D("0.00"), D("12.50"))},
        )
