# inventory/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.api.views import (
    BatchViewSet,
    InventoryTransactionViewSet,
    ProductViewSet,
    StockReservationViewSet,
)

router = DefaultRouter()
router.register("products", ProductViewSet, basename="product")
router.register("batches", BatchViewSet, basename="batch")
router.register("reservations", StockReservationViewSet, basename="reservation")
router.register("transactions", InventoryTransactionViewSet, basename="inventory-transaction")

urlpatterns = [
    path("", include(router.urls)),
]
