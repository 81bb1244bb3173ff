# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .customer import Customer
from .delivery import DeliveryChallan, DeliveryChallanItem
from .invoice import SalesInvoice, SalesInvoiceItem
from .order import SalesOrder, SalesOrderItem

__all__ = [
    "Customer",
    "SalesOrder",
    "SalesOrderItem",
    "DeliveryChallan",
    "DeliveryChallanItem",
    "SalesInvoice",
    "SalesInvoiceItem",
]
