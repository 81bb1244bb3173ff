# sales/tests/test_invoice_posting.py

from decimal import Decimal

from django.test import TestCase

from accounting.models import JournalEntry
from accounting.tests.helpers import assert_balanced, entry_for, lines_by_code, seed_chart
from inventory.tests.factories import make_batch, make_customer, make_product
from sales.models import SalesInvoice, SalesInvoiceItem
from sales.services.exceptions import SalesWorkflowError
from sales.services.invoice_service import create_sales_invoice, set_invoice_status


def D(value):
    return Decimal(str(value))


class SalesInvoicePostingTests(TestCase):
    def setUp(self):
        seed_chart()
        self.customer = make_customer()
        self.product = make_product()
        self.batch = make_batch(self.product, 100, import_price=D("300.00"))

    def _invoice(self, **overrides):
        payload = {
            "customer": self.customer,
            "items": [
                {"product": self.product, "batch": self.batch, "quantity": 10, "unit_price": D("20.00")}
            ],
            "tax_amount": D("22.00"),
        }
        payload.update(overrides)
        return create_sales_invoice(**payload)

    def _entry(self, invoice):
        invoice.refresh_from_db()
        return entry_for(JournalEntry.SOURCE_SALES_INVOICE, invoice.invoice_number)

    def test_unpaid_invoice_posts_revenue_tax_and_cost(self):
        invoice = self._invoice()

        self.assertEqual(invoice.subtotal_amount, D("200.00"))
        self.assertEqual(invoice.total_amount, D("222.00"))

        entry = self._entry(invoice)
        self.assertIsNotNone(entry)
        self.assertEqual(invoice.journal_entry_id, entry.pk)
        self.assertEqual(
            lines_by_code(entry),
            {
                "1120": (D("222.00"), D("0.00")),
                "4100": (D("0.00"), D("200.00")),
                "2130": (D("0.00"), D("22.00")),
                "5100": (D("30.00"), D("0.00")),
                "1130": (D("0.00"), D("30.00")),
            },
        )
        assert_balanced(self, entry)

    def test_draft_is_not_posted(self):
        invoice = self._invoice(status=SalesInvoice.STATUS_DRAFT)
        self.assertIsNone(self._entry(invoice))
        self.assertIsNone(invoice.journal_entry_id)

    def test_issuing_a_draft_posts_it(self):
        invoice = self._invoice(status=SalesInvoice.STATUS_DRAFT)
        set_invoice_status(invoice, SalesInvoice.STATUS_UNPAID)
        self.assertIsNotNone(self._entry(invoice))

    def test_cancel_removes_entry(self):
        invoice = self._invoice()
        set_invoice_status(invoice, SalesInvoice.STATUS_CANCELLED)

        self.assertIsNone(self._entry(invoice))
        self.assertFalse(
            JournalEntry.objects.filter(source_module=JournalEntry.SOURCE_SALES_INVOICE).exists()
        )

    def test_adding_an_item_reposts_once(self):
        invoice = self._invoice()
        SalesInvoiceItem.objects.create(
            invoice=invoice, product=self.product, quantity=5, unit_price=D("10.00")
        )

        self.assertEqual(
            JournalEntry.objects.filter(source_module=JournalEntry.SOURCE_SALES_INVOICE).count(), 1
        )
        lines = lines_by_code(self._entry(invoice))
        self.assertEqual(lines["1120"], (D("272.00"), D("0.00")))
        self.assertEqual(lines["4100"], (D("0.00"), D("250.00")))
        # the line without a batch has no known cost
        self.assertEqual(lines["5100"], (D("30.00"), D("0.00")))

    def test_paid_status_keeps_single_entry(self):
        invoice = self._invoice()
        set_invoice_status(invoice, SalesInvoice.STATUS_PAID)

        self.assertEqual(
            JournalEntry.objects.filter(source_module=JournalEntry.SOURCE_SALES_INVOICE).count(), 1
        )

    def test_delete_removes_entry(self):
        invoice = self._invoice()
        number = invoice.invoice_number
        invoice.delete()

        self.assertIsNone(entry_for(JournalEntry.SOURCE_SALES_INVOICE, number))

    def test_invoice_needs_items(self):
        with self.assertRaises(SalesWorkflowError):
            self._invoice(items=[])

    def test_numbering(self):
        first, second = self._invoice(), self._invoice()
        self.assertTrue(first.invoice_number.startswith("INV"))
        self.assertNotEqual(first.invoice_number, second.invoice_number)
