# accounting/api/views/__init__.py

"""
accounting.api.views package

Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.accounts import AccountViewSet
from accounting.api.views.journal_entries import JournalEntryViewSet
from accounting.api.views.reports import (
    PPNReportView,
    TrialBalanceView,
    UnpostedDocumentsView,
)

__all__ = [
    "AccountViewSet",
    "JournalEntryViewSet",
    "PPNReportView",
    "TrialBalanceView",
    "UnpostedDocumentsView",
]
