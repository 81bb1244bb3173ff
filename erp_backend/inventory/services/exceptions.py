# inventory/services/exceptions.py

"""
Inventory domain errors.

Unlike posting failures these always propagate: continuing would oversell
stock or corrupt the reservation counters.
"""


class InventoryError(Exception):
    """Base class for inventory-level failures."""


class InsufficientStockError(InventoryError):
    """A batch does not hold enough physical stock for the requested movement."""


class ReservationError(InventoryError):
    """A reservation request is inconsistent (wrong order state, unknown line...)."""
