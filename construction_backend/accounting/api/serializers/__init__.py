# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import AccountCreateSerializer, AccountListSerializer
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntryLineSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
    JournalEntryUpdateSerializer,
)
from accounting.api.serializers.ledger_entries import GeneralLedgerEntrySerializer

__all__ = [
    "AccountListSerializer",
    "AccountCreateSerializer",
    "JournalEntrySerializer",
    "JournalEntryLineSerializer",
    "JournalEntryCreateSerializer",
    "JournalEntryUpdateSerializer",
    "JournalEntryReverseSerializer",
    "GeneralLedgerEntrySerializer",
]
