# accounting/api/views/journal_entries.py

"""
PATH: accounting/api/views/journal_entries.py

JOURNAL ENTRY API (READ-ONLY / AUDIT SAFE)

Entries are written only by the posting engine, so there is no create /
update / delete here.

Filtering (django-filter):
- ?source_module=expenses
- ?reference_number=EXP-12
- ?entry_date=2026-01-15
"""

from drf_spectacular.utils import extend_schema
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.serializers import JournalEntrySerializer
from accounting.models.journal import JournalEntry


@extend_schema(tags=["accounting"])
class JournalEntryViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalEntrySerializer
    http_method_names = ["get", "head", "options"]
    filterset_fields = ("source_module", "reference_number", "entry_date", "is_posted")

    queryset = JournalEntry.objects.prefetch_related("lines__account").order_by(
        "-entry_date", "-id"
    )

    def get_queryset(self):
        if not self.request.user.has_perm("accounting.view_journalentry"):
            raise PermissionDenied("You do not have permission to view journal entries.")
        return super().get_queryset()
