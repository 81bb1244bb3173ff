# purchases/signals.py

"""
Purchase invoice triggers.

Header and items are saved separately, so every change re-runs the
convergence rule: the entry exists only while the invoice is postable and
items + tax equal the entered total.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from accounting.models import JournalEntry
from accounting.services.posting import posting_enabled, unpost_document
from accounting.services.posting_invoices import sync_purchase_invoice_posting
from purchases.models import PurchaseInvoice, PurchaseInvoiceItem


@receiver(post_save, sender=PurchaseInvoice)
def purchase_invoice_saved(sender, instance, created, **kwargs):
    if created and not instance.is_postable:
        return
    sync_purchase_invoice_posting(instance)


@receiver(post_delete, sender=PurchaseInvoice)
def purchase_invoice_deleted(sender, instance, **kwargs):
    if posting_enabled():
        unpost_document(instance, source_module=JournalEntry.SOURCE_PURCHASE_INVOICE)


def _resync(invoice_id):
    invoice = PurchaseInvoice.objects.filter(pk=invoice_id).first()
    if invoice is not None:
        sync_purchase_invoice_posting(invoice)


@receiver(post_save, sender=PurchaseInvoiceItem)
def purchase_item_saved(sender, instance, **kwargs):
    _resync(instance.invoice_id)


@receiver(post_delete, sender=PurchaseInvoiceItem)
def purchase_item_deleted(sender, instance, **kwargs):
    _resync(instance.invoice_id)
