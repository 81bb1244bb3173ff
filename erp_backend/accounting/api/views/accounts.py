# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/
GET /api/accounting/accounts/?account_type=expense&is_active=true

Accounts are seeded with `manage.py seed_import_chart`; edits go through admin.
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import AccountListSerializer
from accounting.models.account import Account


@extend_schema(tags=["accounting"])
class AccountViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountListSerializer
    queryset = Account.objects.select_related("parent").order_by("code")
    filterset_fields = ("account_type", "is_active", "parent")
    pagination_class = None
