# imports/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from imports.api.views import ImportContainerViewSet, ImportRequirementViewSet

router = DefaultRouter()
router.register("containers", ImportContainerViewSet, basename="import-container")
router.register("requirements", ImportRequirementViewSet, basename="import-requirement")

urlpatterns = [
    path("", include(router.urls)),
]
