# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import AccountListSerializer
from accounting.api.serializers.journal_entries import (
    JournalEntryLineSerializer,
    JournalEntrySerializer,
)
from accounting.api.serializers.reports import (
    PPNMonthSerializer,
    UnpostedDocumentSerializer,
)

__all__ = [
    "AccountListSerializer",
    "JournalEntryLineSerializer",
    "JournalEntrySerializer",
    "PPNMonthSerializer",
    "UnpostedDocumentSerializer",
]
