# accounting/apps.py

"""
ACCOUNTING APP CONFIG

Double-entry accounting core:
- Chart of accounts registry
- Journal entry engine + general ledger
- Financial statements (trial balance, balance sheet, P&L)
- Ledger posting outbox for business documents
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
