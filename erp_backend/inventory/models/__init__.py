from .product import Product
from .batch import Batch
from .reservation import StockReservation
from .transaction import InventoryTransaction

__all__ = [
    "Product",
    "Batch",
    "StockReservation",
    "InventoryTransaction",
]
