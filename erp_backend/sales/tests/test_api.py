# sales/tests/test_api.py

from decimal import Decimal

from django.contrib.auth.models import Permission, User
from django.test import TestCase
from rest_framework.test import APIClient

from inventory.models import Batch
from inventory.tests.factories import make_batch, make_customer, make_product
from sales.models import DeliveryChallan, SalesOrder


class SalesApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

        self.customer = make_customer()
        self.product = make_product()
        self.batch = make_batch(self.product, 20, expires_in_days=90)

    def _create_order(self, quantity=5):
        return self.client.post(
            "/api/sales/orders/",
            {
                "customer": self.customer.pk,
                "items": [{"product": self.product.pk, "quantity": quantity, "unit_price": "12.50"}],
            },
            format="json",
        )

    def test_requires_authentication(self):
        res = APIClient().get("/api/sales/orders/")
        self.assertEqual(res.status_code, 401)

    def test_create_and_approve_order(self):
        res = self._create_order()
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["status"], SalesOrder.STATUS_DRAFT)
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("62.50"))

        res = self.client.post(f"/api/sales/orders/{res.data['id']}/approve/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], SalesOrder.STATUS_STOCK_RESERVED)
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).reserved_stock, 5)

    def test_approving_twice_is_rejected(self):
        order_id = self._create_order().data["id"]
        self.client.post(f"/api/sales/orders/{order_id}/approve/")

        res = self.client.post(f"/api/sales/orders/{order_id}/approve/")
        self.assertEqual(res.status_code, 400)

    def test_order_list_is_paginated(self):
        self._create_order()
        res = self.client.get("/api/sales/orders/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(len(res.data["results"]), 1)

    def test_delivery_challan_over_free_stock_conflicts(self):
        other = make_customer()
        order_id = self._create_order(quantity=20).data["id"]
        self.client.post(f"/api/sales/orders/{order_id}/approve/")

        res = self.client.post(
            "/api/sales/delivery-challans/",
            {
                "customer": other.pk,
                "items": [{"product": self.product.pk, "batch": self.batch.pk, "quantity": 1}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)

        res = self.client.post(f"/api/sales/delivery-challans/{res.data['id']}/approve/")
        self.assertEqual(res.status_code, 409)

    def test_delivery_challan_approve_and_delete(self):
        order_id = self._create_order().data["id"]
        self.client.post(f"/api/sales/orders/{order_id}/approve/")

        res = self.client.post(
            "/api/sales/delivery-challans/",
            {
                "customer": self.customer.pk,
                "sales_order": order_id,
                "items": [{"product": self.product.pk, "batch": self.batch.pk, "quantity": 5}],
            },
            format="json",
        )
        challan_id = res.data["id"]

        res = self.client.post(f"/api/sales/delivery-challans/{challan_id}/approve/")
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], DeliveryChallan.STATUS_APPROVED)
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).current_stock, 15)

        res = self.client.delete(f"/api/sales/delivery-challans/{challan_id}/")
        self.assertEqual(res.status_code, 204)
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).current_stock, 20)

    def test_challan_rejects_batch_of_other_product(self):
        other_batch = make_batch(make_product(), 5)
        res = self.client.post(
            "/api/sales/delivery-challans/",
            {
                "customer": self.customer.pk,
                "items": [{"product": self.product.pk, "batch": other_batch.pk, "quantity": 1}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 400)

    def test_create_invoice_and_cancel(self):
        res = self.client.post(
            "/api/sales/invoices/",
            {
                "customer": self.customer.pk,
                "tax_amount": "11.00",
                "items": [
                    {"product": self.product.pk, "batch": self.batch.pk, "quantity": 2, "unit_price": "50.00"}
                ],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(Decimal(res.data["total_amount"]), Decimal("111.00"))
        self.assertEqual(res.data["status"], "unpaid")

        res = self.client.post(
            f"/api/sales/invoices/{res.data['id']}/status/", {"status": "cancelled"}, format="json"
        )
        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(res.data["status"], "cancelled")
        self.assertIsNone(res.data["journal_entry"])


class DeliveryApprovalPermissionTests(TestCase):
    def test_approve_needs_change_permission(self):
        clerk = User.objects.create_user("clerk", password="pass1234")
        clerk.user_permissions.add(
            Permission.objects.get(codename="add_deliverychallan", content_type__app_label="sales")
        )
        customer = make_customer()
        product = make_product()
        batch = make_batch(product, 5)
        challan = DeliveryChallan.objects.create(customer=customer)
        challan.items.create(product=product, batch=batch, quantity=1)

        client = APIClient()
        client.force_authenticate(clerk)
        res = client.post(f"/api/sales/delivery-challans/{challan.pk}/approve/")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(Batch.objects.get(pk=batch.pk).current_stock, 5)
