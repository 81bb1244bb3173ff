# inventory/tests/factories.py

"""Small builders shared by the inventory / sales / imports tests."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from inventory.models import Batch, Product
from sales.models import Customer

_counter = {"n": 0}


def _next() -> int:
    _counter["n"] += 1
    return _counter["n"]


def make_product(**overrides) -> Product:
    n = _next()
    payload = {"sku": f"SKU-{n}", "name": f"Product {n}", "selling_price": Decimal("10.00")}
    payload.update(overrides)
    return Product.objects.create(**payload)


def make_batch(product, quantity, *, expires_in_days=None, **overrides) -> Batch:
    expiry = None
    if expires_in_days is not None:
        expiry = timezone.localdate() + timedelta(days=expires_in_days)
    payload = {
        "product": product,
        "batch_number": f"B-{_next()}",
        "expiry_date": expiry,
        "import_quantity": quantity,
    }
    payload.update(overrides)
    return Batch.objects.create(**payload)


def make_customer(**overrides) -> Customer:
    n = _next()
    payload = {"code": f"C-{n}", "name": f"Customer {n}"}
    payload.update(overrides)
    return Customer.objects.create(**payload)
