# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.account import Account, SubAccount
from accounting.models.journal import JournalEntry, JournalEntryLine, JournalSequence
from accounting.models.ledger import GeneralLedgerEntry
from accounting.models.posting_task import LedgerPostingTask

__all__ = [
    "Account",
    "SubAccount",
    "JournalEntry",
    "JournalEntryLine",
    "JournalSequence",
    "GeneralLedgerEntry",
    "LedgerPostingTask",
]
