# imports/tests/test_api.py

from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient

from imports.models import ImportContainer
from inventory.tests.factories import make_batch, make_product


class AllocateEndpointTests(TestCase):
    def setUp(self):
        self.container = ImportContainer.objects.create(
            container_number="TGHU-7", freight_charges=Decimal("100.00")
        )
        product = make_product()
        make_batch(product, 10, import_price=Decimal("100.00"), import_container=self.container)
        make_batch(product, 30, import_price=Decimal("300.00"), import_container=self.container)
        self.url = f"/api/imports/containers/{self.container.pk}/allocate/"

    def test_superuser_can_reallocate(self):
        client = APIClient()
        client.force_authenticate(User.objects.create_superuser("ops", "ops@example.com", "pass1234"))

        res = client.post(self.url, {"basis": "quantity"}, format="json")

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(
            [Decimal(r["import_cost_allocated"]) for r in res.data],
            [Decimal("25.00"), Decimal("75.00")],
        )

    def test_unknown_basis_is_rejected(self):
        client = APIClient()
        client.force_authenticate(User.objects.create_superuser("ops", "ops@example.com", "pass1234"))

        res = client.post(self.url, {"basis": "weight"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_needs_change_permission(self):
        client = APIClient()
        client.force_authenticate(User.objects.create_user("viewer", password="pass1234"))

        res = client.post(self.url, {}, format="json")
        self.assertEqual(res.status_code, 403)
