# inventory/tests/test_reservations.py

from __future__ import annotations

import random

from django.test import TestCase

from imports.models import ImportRequirement
from inventory.models import Batch, InventoryTransaction, StockReservation
from inventory.services.exceptions import ReservationError
from inventory.services.reservation_service import (
    release_all_reservations,
    release_reservation,
    reserve_stock_for_order,
)
from inventory.services.stock_counters import check_reservation_consistency
from inventory.tests.factories import make_batch, make_customer, make_product
from sales.models import SalesOrder
from sales.services.delivery_service import approve_delivery_challan, create_delivery_challan
from sales.services.order_service import approve_sales_order, cancel_sales_order, create_sales_order


def _reserved_by_batch(order):
    return {
        r.batch_id: r.reserved_quantity
        for r in StockReservation.objects.filter(sales_order=order, status=StockReservation.STATUS_ACTIVE)
    }


class FefoReservationTests(TestCase):
    """
    GUARANTEES:
    - Earliest expiry first, undated batches last, expired batches never
    - reserved_stock always equals the active reservation sum
    - Shortages become import requirements
    """

    def setUp(self):
        self.customer = make_customer()
        self.product = make_product()
        self.expired = make_batch(self.product, 100, expires_in_days=-1)
        self.undated = make_batch(self.product, 100)
        self.late = make_batch(self.product, 50, expires_in_days=400)
        self.soon = make_batch(self.product, 10, expires_in_days=30)

    def _order(self, quantity):
        return create_sales_order(
            customer=self.customer, items=[{"product": self.product, "quantity": quantity}]
        )

    def _reserved(self, batch):
        return Batch.objects.get(pk=batch.pk).reserved_stock

    def test_walks_batches_by_expiry(self):
        order = self._order(25)
        result = approve_sales_order(order)

        self.assertEqual(result["status"], SalesOrder.STATUS_STOCK_RESERVED)
        self.assertEqual(result["shortages"], [])
        self.assertEqual(_reserved_by_batch(order), {self.soon.pk: 10, self.late.pk: 15})
        self.assertEqual(self._reserved(self.soon), 10)
        self.assertEqual(self._reserved(self.late), 15)
        self.assertEqual(self._reserved(self.expired), 0)

        logged = InventoryTransaction.objects.filter(
            transaction_type=InventoryTransaction.TransactionType.RESERVATION,
            reference_id=str(order.pk),
        )
        self.assertEqual(sum(t.quantity for t in logged), 25)

    def test_shortage_generates_requirement(self):
        order = self._order(200)
        result = approve_sales_order(order)

        self.assertEqual(result["status"], SalesOrder.STATUS_SHORTAGE)
        self.assertEqual(
            _reserved_by_batch(order),
            {self.soon.pk: 10, self.late.pk: 50, self.undated.pk: 100},
        )
        requirement = ImportRequirement.objects.get(sales_order=order)
        self.assertEqual(requirement.required_quantity, 200)
        self.assertEqual(requirement.shortage_quantity, 40)
        self.assertEqual(requirement.status, ImportRequirement.STATUS_PENDING)

    def test_rerun_is_idempotent(self):
        order = self._order(200)
        approve_sales_order(order)
        reserve_stock_for_order(order)

        self.assertEqual(self._reserved(self.undated), 100)
        self.assertEqual(
            StockReservation.objects.filter(sales_order=order, status=StockReservation.STATUS_ACTIVE).count(),
            3,
        )
        self.assertEqual(ImportRequirement.objects.filter(sales_order=order).count(), 1)
        self.assertEqual(check_reservation_consistency(), [])

    def test_second_order_only_sees_free_stock(self):
        first = self._order(15)
        approve_sales_order(first)
        second = self._order(10)
        approve_sales_order(second)

        self.assertEqual(_reserved_by_batch(second), {self.late.pk: 10})
        self.assertEqual(self._reserved(self.late), 15)

    def test_release_oldest_first(self):
        order = self._order(25)
        approve_sales_order(order)

        released = release_reservation(order, self.product, 12)

        self.assertEqual(released, 12)
        self.assertEqual(self._reserved(self.soon), 0)
        self.assertEqual(self._reserved(self.late), 13)
        self.assertEqual(
            StockReservation.objects.get(sales_order=order, batch=self.soon).status,
            StockReservation.STATUS_RELEASED,
        )

    def test_release_is_capped_by_what_is_reserved(self):
        order = self._order(5)
        approve_sales_order(order)
        self.assertEqual(release_reservation(order, self.product, 50), 5)
        self.assertEqual(release_all_reservations(order), 0)

    def test_cancel_releases_and_cancels_requirements(self):
        order = self._order(200)
        approve_sales_order(order)

        cancel_sales_order(order)

        self.assertEqual(self._reserved(self.undated), 0)
        self.assertEqual(
            ImportRequirement.objects.get(sales_order=order).status,
            ImportRequirement.STATUS_CANCELLED,
        )
        with self.assertRaises(ReservationError):
            reserve_stock_for_order(order)

    def test_fractional_quantity_rejected(self):
        order = self._order(1)
        with self.assertRaises(ReservationError):
            release_reservation(order, self.product, 1.5)

    def test_pre_delivered_quantity_is_not_reserved_again(self):
        order = self._order(20)
        challan = create_delivery_challan(
            customer=self.customer,
            items=[{"product": self.product, "batch": self.soon, "quantity": 5}],
        )
        approve_delivery_challan(challan)

        approve_sales_order(order)

        # 5 already delivered; 15 left: the 5 still on the soon batch, then 10 from late
        self.assertEqual(_reserved_by_batch(order), {self.soon.pk: 5, self.late.pk: 10})


class ReservationConsistencyTests(TestCase):
    def test_random_reserve_release_cycles_stay_consistent(self):
        rng = random.Random(20260115)
        customer = make_customer()
        products = [make_product() for _ in range(3)]
        batches = []
        for product in products:
            for days in (20, 90, None):
                batches.append(make_batch(product, rng.randint(5, 40), expires_in_days=days))

        orders = []
        for _ in range(25):
            move = rng.random()
            if move < 0.5 or not orders:
                product = rng.choice(products)
                order = create_sales_order(
                    customer=customer,
                    items=[{"product": product, "quantity": rng.randint(1, 60)}],
                )
                approve_sales_order(order)
                orders.append((order, product))
            elif move < 0.8:
                order, product = rng.choice(orders)
                release_reservation(order, product, rng.randint(1, 20))
            else:
                order, product = orders.pop(rng.randrange(len(orders)))
                cancel_sales_order(order)

            self.assertEqual(check_reservation_consistency(), [])
            for batch in Batch.objects.all():
                self.assertGreaterEqual(batch.free_stock, 0)
                self.assertLessEqual(batch.reserved_stock, batch.current_stock)
