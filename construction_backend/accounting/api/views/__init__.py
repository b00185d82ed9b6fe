# accounting/api/views/__init__.py

"""
accounting.api.views package

Expose public API views cleanly without making routing/imports fragile.

Important:
- ViewSets are defined in accounting.api.view (singular) in this codebase.
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

# ViewSets
from accounting.api.view import GeneralLedgerViewSet, JournalEntryViewSet

# Read-only reports
from accounting.api.views.trial_balance import TrialBalanceView
from accounting.api.views.balance_sheet import BalanceSheetView
from accounting.api.views.profit_and_loss import ProfitAndLossView
from accounting.api.views.project_ledger import ProjectLedgerView

# Master data
from accounting.api.views.accounts import AccountListCreateView

__all__ = [
    "JournalEntryViewSet",
    "GeneralLedgerViewSet",
    "TrialBalanceView",
    "BalanceSheetView",
    "ProfitAndLossView",
    "ProjectLedgerView",
    "AccountListCreateView",
]
