# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

# Canonical ViewSets live in accounting/api/view.py (singular) in this project.
# We import directly to avoid circular imports through views/__init__.py.
from accounting.api.view import GeneralLedgerViewSet, JournalEntryViewSet
from accounting.api.views.accounts import AccountListCreateView
from accounting.api.views.balance_sheet import BalanceSheetView
from accounting.api.views.profit_and_loss import ProfitAndLossView
from accounting.api.views.project_ledger import ProjectLedgerView
from accounting.api.views.trial_balance import TrialBalanceView

router = DefaultRouter()
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")
router.register("general-ledger", GeneralLedgerViewSet, basename="general-ledger")

urlpatterns = [
    # Router endpoints
    path("", include(router.urls)),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("profit-and-loss/", ProfitAndLossView.as_view(), name="profit-and-loss"),
    path(
        "project-ledger/<str:project>/",
        ProjectLedgerView.as_view(),
        name="project-ledger",
    ),
    # Master data
    path("accounts/", AccountListCreateView.as_view(), name="accounts"),
]
