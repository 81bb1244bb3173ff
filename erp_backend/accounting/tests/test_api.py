# accounting/tests/test_api.py

from django.contrib.auth.models import Permission, User
from django.test import TestCase
from rest_framework.test import APIClient

from accounting.tests.helpers import seed_chart


class ReportPermissionTests(TestCase):
    def setUp(self):
        seed_chart()
        self.user = User.objects.create_user("clerk", password="pass1234")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def _grant_view(self):
        self.user.user_permissions.add(
            Permission.objects.get(codename="view_journalentry", content_type__app_label="accounting")
        )
        # permission cache lives on the instance
        self.user = User.objects.get(pk=self.user.pk)
        self.client.force_authenticate(self.user)

    def test_reports_need_view_permission(self):
        for url in (
            "/api/accounting/reports/unposted/",
            "/api/accounting/reports/ppn/",
            "/api/accounting/reports/trial-balance/",
        ):
            self.assertEqual(self.client.get(url).status_code, 403, url)

    def test_trial_balance_with_permission(self):
        self._grant_view()
        res = self.client.get("/api/accounting/reports/trial-balance/?as_of=2026-01-31")
        self.assertEqual(res.status_code, 200)
        self.assertIn("accounts", res.data)

    def test_bad_inputs(self):
        self._grant_view()
        self.assertEqual(
            self.client.get("/api/accounting/reports/trial-balance/?as_of=yesterday").status_code, 400
        )
        self.assertEqual(self.client.get("/api/accounting/reports/ppn/?year=abc").status_code, 400)

    def test_ppn_report_has_twelve_months(self):
        self._grant_view()
        res = self.client.get("/api/accounting/reports/ppn/?year=2026")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["year"], 2026)
        self.assertEqual(len(res.data["months"]), 12)
