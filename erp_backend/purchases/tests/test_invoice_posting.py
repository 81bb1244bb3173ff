# purchases/tests/test_invoice_posting.py

"""
Header and items arrive in separate saves; whichever order they come in,
the invoice ends up with one balanced entry once items + tax == total.
"""

from decimal import Decimal

from django.test import TestCase

from accounting.models import JournalEntry
from accounting.tests.helpers import account, assert_balanced, entry_for, lines_by_code, seed_chart
from inventory.tests.factories import make_product
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem, Supplier


def D(value):
    return Decimal(str(value))


class PurchaseInvoiceConvergenceTests(TestCase):
    def setUp(self):
        seed_chart()
        self.supplier = Supplier.objects.create(name="Principal GmbH", country="DE")
        self.product = make_product()

    def _header(self, **overrides):
        payload = {
            "supplier": self.supplier,
            "invoice_number": "SUP-001",
            "status": PurchaseInvoice.STATUS_UNPAID,
            "tax_amount": D("100.00"),
            "total_amount": D("1100.00"),
        }
        payload.update(overrides)
        return PurchaseInvoice.objects.create(**payload)

    def _item(self, invoice, **overrides):
        payload = {
            "invoice": invoice,
            "item_type": PurchaseInvoiceItem.TYPE_INVENTORY,
            "product": self.product,
            "quantity": D("10"),
            "unit_price": D("100.00"),
        }
        payload.update(overrides)
        return PurchaseInvoiceItem.objects.create(**payload)

    def _entry(self, invoice):
        return entry_for(JournalEntry.SOURCE_PURCHASE_INVOICE, invoice.ledger_reference)

    def _count(self):
        return JournalEntry.objects.filter(source_module=JournalEntry.SOURCE_PURCHASE_INVOICE).count()

    def test_header_without_items_waits(self):
        invoice = self._header()
        self.assertIsNone(self._entry(invoice))

    def test_inventory_line_completes_the_invoice(self):
        invoice = self._header()
        self._item(invoice)

        entry = self._entry(invoice)
        self.assertIsNotNone(entry)
        self.assertEqual(
            lines_by_code(entry),
            {
                "1130": (D("1000.00"), D("0.00")),
                "1150": (D("100.00"), D("0.00")),
                "2110": (D("0.00"), D("1100.00")),
            },
        )
        assert_balanced(self, entry)
        invoice.refresh_from_db()
        self.assertEqual(invoice.journal_entry_id, entry.pk)

    def test_items_first_then_header_total(self):
        invoice = self._header(total_amount=D("0.00"), tax_amount=D("0.00"))
        self._item(invoice)
        self.assertIsNone(self._entry(invoice))

        invoice.tax_amount = D("100.00")
        invoice.total_amount = D("1100.00")
        invoice.save()

        self.assertIsNotNone(self._entry(invoice))
        self.assertEqual(self._count(), 1)

    def test_expense_and_asset_lines(self):
        invoice = self._header(tax_amount=D("0.00"), total_amount=D("800.00"))
        self._item(
            invoice,
            item_type=PurchaseInvoiceItem.TYPE_EXPENSE,
            product=None,
            description="Power bill",
            expense_category="electricity",
            quantity=D("1"),
            unit_price=D("300.00"),
        )
        self._item(
            invoice,
            item_type=PurchaseInvoiceItem.TYPE_ASSET,
            product=None,
            description="Cold room",
            quantity=D("1"),
            unit_price=D("500.00"),
        )

        self.assertEqual(
            lines_by_code(self._entry(invoice)),
            {
                "6310": (D("300.00"), D("0.00")),
                "1200": (D("500.00"), D("0.00")),
                "2110": (D("0.00"), D("800.00")),
            },
        )

    def test_explicit_expense_account_wins(self):
        invoice = self._header(tax_amount=D("0.00"), total_amount=D("50.00"))
        self._item(
            invoice,
            item_type=PurchaseInvoiceItem.TYPE_EXPENSE,
            product=None,
            expense_category="electricity",
            expense_account=account("6400"),
            quantity=D("1"),
            unit_price=D("50.00"),
        )
        self.assertIn("6400", lines_by_code(self._entry(invoice)))

    def test_mismatch_removes_entry(self):
        invoice = self._header()
        item = self._item(invoice)
        self.assertEqual(self._count(), 1)

        item.unit_price = D("90.00")
        item.save()

        self.assertIsNone(self._entry(invoice))
        self.assertEqual(self._count(), 0)

    def test_editing_item_amount_reposts_once(self):
        invoice = self._header(total_amount=D("1000.00"))
        item = self._item(invoice, unit_price=D("90.00"))
        self.assertEqual(self._count(), 1)

        invoice.total_amount = D("1100.00")
        invoice.save()
        item.unit_price = D("100.00")
        item.save()

        self.assertEqual(self._count(), 1)
        self.assertEqual(lines_by_code(self._entry(invoice))["2110"], (D("0.00"), D("1100.00")))

    def test_cancel_and_delete_remove_entry(self):
        invoice = self._header()
        self._item(invoice)

        invoice.status = PurchaseInvoice.STATUS_CANCELLED
        invoice.save()
        self.assertEqual(self._count(), 0)

        invoice.status = PurchaseInvoice.STATUS_UNPAID
        invoice.save()
        self.assertEqual(self._count(), 1)

        invoice.delete()
        self.assertEqual(self._count(), 0)

    def test_draft_never_posts(self):
        invoice = self._header(status=PurchaseInvoice.STATUS_DRAFT)
        self._item(invoice)
        self.assertIsNone(self._entry(invoice))
