# sales/signals.py

"""
Sales-side triggers.

- DeliveryChallanItem created  -> release the order's matching reservations
- SalesInvoice saved           -> post / re-post / remove its ledger entry
- SalesInvoiceItem changed     -> recompute header totals, then re-post
"""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from accounting.models import JournalEntry
from accounting.services.change_tracking import changed_fields, remember_previous
from accounting.services.posting import posting_enabled, unpost_document
from accounting.services.posting_invoices import sync_sales_invoice_posting
from sales.models import DeliveryChallanItem, SalesInvoice, SalesInvoiceItem
from sales.services.delivery_service import release_for_delivery_item
from sales.services.invoice_service import recompute_invoice_totals

INVOICE_POSTING_FIELDS = (
    "status",
    "customer",
    "invoice_date",
    "subtotal_amount",
    "tax_amount",
    "total_amount",
)


@receiver(post_save, sender=DeliveryChallanItem)
def delivery_item_created(sender, instance, created, **kwargs):
    if created:
        release_for_delivery_item(instance)


# ============================================================
# INVOICE HEADER
# ============================================================


@receiver(pre_save, sender=SalesInvoice)
def remember_invoice(sender, instance, **kwargs):
    remember_previous(instance, INVOICE_POSTING_FIELDS)


@receiver(post_save, sender=SalesInvoice)
def invoice_saved(sender, instance, created, **kwargs):
    if created and not instance.is_postable:
        return

    if (
        not instance.is_postable
        or not instance.journal_entry_id
        or changed_fields(instance, INVOICE_POSTING_FIELDS)
    ):
        sync_sales_invoice_posting(instance)


@receiver(post_delete, sender=SalesInvoice)
def invoice_deleted(sender, instance, **kwargs):
    if posting_enabled():
        unpost_document(instance, source_module=JournalEntry.SOURCE_SALES_INVOICE)


# ============================================================
# INVOICE ITEMS
# ============================================================


def _resync_invoice(invoice_id):
    recompute_invoice_totals(invoice_id)
    invoice = SalesInvoice.objects.filter(pk=invoice_id).first()
    if invoice is not None:
        sync_sales_invoice_posting(invoice)


@receiver(post_save, sender=SalesInvoiceItem)
def invoice_item_saved(sender, instance, **kwargs):
    _resync_invoice(instance.invoice_id)


@receiver(post_delete, sender=SalesInvoiceItem)
def invoice_item_deleted(sender, instance, **kwargs):
    # on a header cascade this re-posts briefly; the header post_delete removes it
    _resync_invoice(instance.invoice_id)
