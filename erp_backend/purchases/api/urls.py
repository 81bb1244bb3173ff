# purchases/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from purchases.api.views import PurchaseInvoiceItemViewSet, PurchaseInvoiceViewSet, SupplierViewSet

router = DefaultRouter()
router.register("suppliers", SupplierViewSet, basename="supplier")
router.register("invoices", PurchaseInvoiceViewSet, basename="purchase-invoice")
router.register("invoice-items", PurchaseInvoiceItemViewSet, basename="purchase-invoice-item")

urlpatterns = [
    path("", include(router.urls)),
]
