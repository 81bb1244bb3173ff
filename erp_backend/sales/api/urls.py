# sales/api/urls.py

"""
SALES API URLS

- /api/sales/customers/
- /api/sales/orders/                 (+ approve / reserve / cancel / items)
- /api/sales/delivery-challans/      (+ approve)
- /api/sales/invoices/               (+ status)
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.api.viewsets.customers import CustomerViewSet
from sales.api.viewsets.deliveries import DeliveryChallanViewSet
from sales.api.viewsets.invoices import SalesInvoiceViewSet
from sales.api.viewsets.orders import SalesOrderViewSet

router = DefaultRouter()
router.register("customers", CustomerViewSet, basename="customer")
router.register("orders", SalesOrderViewSet, basename="sales-order")
router.register("delivery-challans", DeliveryChallanViewSet, basename="delivery-challan")
router.register("invoices", SalesInvoiceViewSet, basename="sales-invoice")

urlpatterns = [
    path("", include(router.urls)),
]
