# imports/tests/test_cost_allocation.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase, override_settings

from accounting.tests.helpers import seed_chart
from finance.models import FinanceExpense
from imports.models import ImportContainer
from imports.services.cost_allocation import (
    AllocationError,
    allocate_container_costs,
    split_pool,
)
from inventory.models import Batch
from inventory.tests.factories import make_batch, make_product

D = Decimal


class SplitPoolTests(TestCase):
    def test_shares_sum_exactly_to_pool(self):
        shares = split_pool(D("100.00"), [D("1"), D("1"), D("1")])
        self.assertEqual(shares, [D("33.33"), D("33.33"), D("33.34")])
        self.assertEqual(sum(shares), D("100.00"))

    def test_zero_weights_split_equally(self):
        self.assertEqual(split_pool(D("10.00"), [D("0"), D("0")]), [D("5.00"), D("5.00")])

    def test_no_batches(self):
        self.assertEqual(split_pool(D("10.00"), []), [])


class ContainerAllocationTests(TestCase):
    """
    GUARANTEES:
    - Allocated shares always sum to the capitalizable pool
    - PPN / PPh never enter landed cost
    - Any change to the inputs re-runs the allocation from scratch
    """

    def setUp(self):
        self.product = make_product()
        self.container = ImportContainer.objects.create(
            container_number="MSKU-100",
            freight_charges=D("100.00"),
            port_charges=D("50.00"),
            ppn_import=D("1000.00"),
            pph_import=D("250.00"),
        )
        self.small = make_batch(
            self.product, 100, import_price=D("300.00"), import_container=self.container
        )
        self.large = make_batch(
            self.product, 200, import_price=D("700.00"), import_container=self.container
        )

    def _fresh(self, batch):
        return Batch.objects.get(pk=batch.pk)

    def test_value_basis_split(self):
        small, large = self._fresh(self.small), self._fresh(self.large)

        self.assertEqual(small.import_cost_allocated, D("45.00"))
        self.assertEqual(large.import_cost_allocated, D("105.00"))
        self.assertEqual(small.final_landed_cost, D("345.00"))
        self.assertEqual(small.landed_cost_per_unit, D("3.4500"))
        self.assertEqual(large.landed_cost_per_unit, D("4.0250"))

        self.container.refresh_from_db()
        self.assertEqual(self.container.total_import_expenses, D("150.00"))
        self.assertIsNotNone(self.container.allocated_at)

    def test_quantity_basis(self):
        rows = allocate_container_costs(self.container, basis="quantity")

        self.assertEqual([r["import_cost_allocated"] for r in rows], [D("50.00"), D("100.00")])

    @override_settings(IMPORT_COST_ALLOCATION_BASIS="quantity")
    def test_configured_basis_is_default(self):
        allocate_container_costs(self.container)
        self.assertEqual(self._fresh(self.small).import_cost_allocated, D("50.00"))

    def test_unknown_basis_rejected(self):
        with self.assertRaises(AllocationError):
            allocate_container_costs(self.container, basis="weight")

    def test_tax_edit_does_not_change_landed_cost(self):
        self.container.ppn_import = D("5000.00")
        self.container.save()

        self.assertEqual(self._fresh(self.small).import_cost_allocated, D("45.00"))

    def test_cost_edit_reallocates(self):
        self.container.duty_bm = D("850.00")
        self.container.save()

        small, large = self._fresh(self.small), self._fresh(self.large)
        self.assertEqual(small.import_cost_allocated, D("300.00"))
        self.assertEqual(large.import_cost_allocated, D("700.00"))

    def test_new_batch_reallocates(self):
        make_batch(self.product, 10, import_price=D("500.00"), import_container=self.container)

        self.assertEqual(self._fresh(self.small).import_cost_allocated, D("30.00"))
        self.assertEqual(
            sum(b.import_cost_allocated for b in Batch.objects.filter(import_container=self.container)),
            D("150.00"),
        )

    def test_batch_leaving_container_resets_and_rebalances(self):
        batch = self._fresh(self.small)
        batch.import_container = None
        batch.save()

        small = self._fresh(self.small)
        self.assertEqual(small.import_cost_allocated, D("0.00"))
        self.assertEqual(small.final_landed_cost, D("300.00"))
        self.assertEqual(self._fresh(self.large).import_cost_allocated, D("150.00"))

    def test_batch_delete_rebalances(self):
        self.small.delete()
        self.assertEqual(self._fresh(self.large).import_cost_allocated, D("150.00"))

    def test_container_delete_resets_batches(self):
        self.container.delete()
        self.assertEqual(self._fresh(self.small).import_cost_allocated, D("0.00"))
        self.assertIsNone(self._fresh(self.small).import_container_id)

    def test_unit_cost_prefers_landed_cost(self):
        self.assertEqual(self._fresh(self.small).unit_cost, D("3.4500"))


class WorkedAllocationTests(TestCase):
    def setUp(self):
        self.product = make_product()

    def test_duty_and_freight_split_by_value(self):
        container = ImportContainer.objects.create(
            container_number="TGHU-300",
            duty_bm=D("100.00"),
            freight_charges=D("50.00"),
            ppn_import=D("20.00"),
        )
        first = make_batch(self.product, 10, import_price=D("300.00"), import_container=container)
        second = make_batch(self.product, 10, import_price=D("700.00"), import_container=container)

        first, second = Batch.objects.get(pk=first.pk), Batch.objects.get(pk=second.pk)
        self.assertEqual(first.import_cost_allocated, D("45.00"))
        self.assertEqual(second.import_cost_allocated, D("105.00"))
        self.assertEqual(first.final_landed_cost, D("345.00"))
        self.assertEqual(second.final_landed_cost, D("805.00"))

    def test_vat_only_container_allocates_nothing(self):
        container = ImportContainer.objects.create(container_number="TGHU-301", ppn_import=D("20.00"))
        batch = make_batch(self.product, 10, import_price=D("300.00"), import_container=container)

        batch = Batch.objects.get(pk=batch.pk)
        self.assertEqual(batch.import_cost_allocated, D("0.00"))
        self.assertEqual(batch.final_landed_cost, D("300.00"))
        container.refresh_from_db()
        self.assertEqual(container.total_import_expenses, D("0.00"))


class ExpenseRollupTests(TestCase):
    """
    GUARANTEES:
    - Linked import expenses overwrite the container cost field they feed
    - Insert, edit, re-link and delete all re-run the allocation
    """

    def setUp(self):
        seed_chart()
        self.product = make_product()
        self.container = ImportContainer.objects.create(container_number="CAIU-400")
        self.batch = make_batch(
            self.product, 10, import_price=D("1000.00"), import_container=self.container
        )

    def _expense(self, **overrides):
        payload = {
            "expense_category": "freight_import",
            "amount": D("200.00"),
            "payment_method": "cash",
            "import_container": self.container,
        }
        payload.update(overrides)
        return FinanceExpense.objects.create(**payload)

    def _allocated(self):
        return Batch.objects.get(pk=self.batch.pk).import_cost_allocated

    def test_freight_expense_flows_into_landed_cost(self):
        self._expense()

        self.container.refresh_from_db()
        self.assertEqual(self.container.freight_charges, D("200.00"))
        self.assertEqual(self.container.total_import_expenses, D("200.00"))
        self.assertEqual(self._allocated(), D("200.00"))

    def test_expenses_of_one_category_are_summed(self):
        self._expense(expense_category="duty_import", amount=D("120.00"))
        self._expense(expense_category="duty_import", amount=D("30.00"))
        self._expense(expense_category="bpom_ski_fees", amount=D("25.00"))
        self._expense(expense_category="other_import", amount=D("5.00"))

        self.container.refresh_from_db()
        self.assertEqual(self.container.duty_bm, D("150.00"))
        self.assertEqual(self.container.bpom_ski_fees, D("25.00"))
        self.assertEqual(self.container.other_import_costs, D("5.00"))
        self.assertEqual(self._allocated(), D("180.00"))

    def test_import_vat_expense_fills_vat_field_only(self):
        self._expense(expense_category="ppn_import", amount=D("110.00"))

        self.container.refresh_from_db()
        self.assertEqual(self.container.ppn_import, D("110.00"))
        self.assertEqual(self._allocated(), D("0.00"))

    def test_unmapped_category_leaves_manual_costs_alone(self):
        self.container.port_charges = D("40.00")
        self.container.save()
        self._expense(expense_category="salary")

        self.container.refresh_from_db()
        self.assertEqual(self.container.port_charges, D("40.00"))
        self.assertEqual(self.container.freight_charges, D("0.00"))
        self.assertEqual(self._allocated(), D("40.00"))

    def test_editing_amount_reallocates(self):
        expense = self._expense()
        expense.amount = D("260.00")
        expense.save()

        self.assertEqual(self._allocated(), D("260.00"))

    def test_moving_expense_rebalances_both_containers(self):
        other = ImportContainer.objects.create(container_number="CAIU-401")
        other_batch = make_batch(self.product, 5, import_price=D("500.00"), import_container=other)
        expense = self._expense()

        expense.import_container = other
        expense.save()

        self.container.refresh_from_db()
        self.assertEqual(self.container.freight_charges, D("0.00"))
        self.assertEqual(self._allocated(), D("0.00"))
        self.assertEqual(Batch.objects.get(pk=other_batch.pk).import_cost_allocated, D("200.00"))

    def test_recategorizing_moves_amount_between_fields(self):
        expense = self._expense()
        expense.expense_category = "duty_import"
        expense.save()

        self.container.refresh_from_db()
        self.assertEqual(self.container.freight_charges, D("0.00"))
        self.assertEqual(self.container.duty_bm, D("200.00"))
        self.assertEqual(self._allocated(), D("200.00"))

    def test_delete_resets_container_cost(self):
        expense = self._expense()
        expense.delete()

        self.container.refresh_from_db()
        self.assertEqual(self.container.freight_charges, D("0.00"))
        self.assertEqual(self._allocated(), D("0.00"))


class ReallocateCommandTests(TestCase):
    def setUp(self):
        product = make_product()
        self.container = ImportContainer.objects.create(
            container_number="MSKU-200", freight_charges=D("90.00")
        )
        self.batch = make_batch(product, 30, import_price=D("100.00"), import_container=self.container)
        Batch.objects.filter(pk=self.batch.pk).update(import_cost_allocated=D("0.00"))

    def test_single_container(self):
        out = StringIO()
        call_command("reallocate_import_costs", container="MSKU-200", stdout=out)

        self.assertIn("MSKU-200", out.getvalue())
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).import_cost_allocated, D("90.00"))

    def test_all_containers(self):
        out = StringIO()
        call_command("reallocate_import_costs", basis="quantity", stdout=out)

        self.assertIn("Reallocated 1 container(s)", out.getvalue())
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).import_cost_allocated, D("90.00"))

    def test_unknown_container(self):
        with self.assertRaises(CommandError):
            call_command("reallocate_import_costs", container="NOPE", stdout=StringIO())
