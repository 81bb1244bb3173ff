# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models at module level (models must stay pure).
"""

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import JournalEntryLine
from accounting.models.sequence import DocumentSequence

__all__ = [
    "Account",
    "JournalEntry",
    "JournalEntryLine",
    "DocumentSequence",
]
