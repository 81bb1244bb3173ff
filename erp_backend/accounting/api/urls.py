# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views import (
    AccountViewSet,
    JournalEntryViewSet,
    PPNReportView,
    TrialBalanceView,
    UnpostedDocumentsView,
)

router = DefaultRouter()
router.register("accounts", AccountViewSet, basename="account")
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")

urlpatterns = [
    # Reports
    path("reports/unposted/", UnpostedDocumentsView.as_view(), name="report-unposted"),
    path("reports/ppn/", PPNReportView.as_view(), name="report-ppn"),
    path("reports/trial-balance/", TrialBalanceView.as_view(), name="report-trial-balance"),
    # Router endpoints
    path("", include(router.urls)),
]
