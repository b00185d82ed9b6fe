# accounting/api/filters.py

"""
PATH: accounting/api/filters.py

Query-string filters for the accounting list endpoints:
    /api/accounting/journal-entries/?start_date=2026-01-01&status=Posted
    /api/accounting/general-ledger/?account_code=1000&project=P-7
"""

import django_filters

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import GeneralLedgerEntry


class JournalEntryFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    transaction_type = django_filters.ChoiceFilter(choices=JournalEntry.TRANSACTION_TYPES)
    status = django_filters.ChoiceFilter(choices=JournalEntry.STATUSES)
    project = django_filters.CharFilter()

    class Meta:
        model = JournalEntry
        fields = ["start_date", "end_date", "transaction_type", "status", "project"]


class GeneralLedgerEntryFilter(django_filters.FilterSet):
    account_code = django_filters.CharFilter()
    account_type = django_filters.ChoiceFilter(choices=Account.ACCOUNT_TYPES)
    transaction_type = django_filters.ChoiceFilter(choices=JournalEntry.TRANSACTION_TYPES)
    project = django_filters.CharFilter()
    start_date = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    status = django_filters.ChoiceFilter(choices=GeneralLedgerEntry.STATUSES)

    class Meta:
        model = GeneralLedgerEntry
        fields = [
            "account_code",
            "account_type",
            "transaction_type",
            "project",
            "start_date",
            "end_date",
            "status",
        ]
