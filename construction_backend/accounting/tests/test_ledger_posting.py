# accounting/tests/test_ledger_posting.py

from __future__ import annotations

from datetime import date
from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management import call_command
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.account_registry import get_or_create_account
from accounting.services.journal_entry_service import create_journal_entry
from accounting.services.ledger_posting import get_previous_balance

TENANT = "tenant-a"


class LedgerPostingTests(TestCase):
    """
    GUARANTEES
    - Each ledger row stores previous balance + debit - credit
    - Replaying Active rows in (date, created_at) order reproduces stored balances
    - Ledger rows are append-only
    """

    def setUp(self):
        self.cash = get_or_create_account(
            tenant_id=TENANT, code="1000", name="Cash Account", account_type=Account.ASSET
        )
        self.materials = get_or_create_account(
            tenant_id=TENANT, code="5000", name="Construction Materials", account_type=Account.EXPENSE
        )
        self.capital = get_or_create_account(
            tenant_id=TENANT, code="3000", name="Owner Capital", account_type=Account.EQUITY
        )

    def _post(self, debit_account, credit_account, amount, entry_date):
        return create_journal_entry(
            tenant_id=TENANT,
            lines=[
                {"account": debit_account, "debit": Decimal(amount)},
                {"account": credit_account, "credit": Decimal(amount)},
            ],
            date=entry_date,
            transaction_type=JournalEntry.JOURNAL,
            description="Ledger posting test",
        )

    # =====================================================
    # RUNNING BALANCE
    # =====================================================

    def test_running_balance_accumulates_debits_and_credits(self):
        self._post(self.cash, self.capital, "100.00", date(2025, 1, 1))
        self._post(self.materials, self.cash, "30.00", date(2025, 1, 2))

        balances = list(
            GeneralLedgerEntry.objects.filter(tenant_id=TENANT, account_code="1000")
            .order_by("date", "created_at", "id")
            .values_list("balance", flat=True)
        )

        self.assertEqual(balances, [Decimal("100.00"), Decimal("70.00")])
        self.assertEqual(
            get_previous_balance(tenant_id=TENANT, account_code="1000"), Decimal("70.00")
        )

    def test_credit_normal_accounts_carry_negative_balances(self):
        self._post(self.cash, self.capital, "100.00", date(2025, 1, 1))

        row = GeneralLedgerEntry.objects.get(tenant_id=TENANT, account_code="3000")
        self.assertEqual(row.balance, Decimal("-100.00"))

    def test_replaying_active_rows_reproduces_stored_balances(self):
        self._post(self.cash, self.capital, "500.00", date(2025, 1, 1))
        self._post(self.materials, self.cash, "120.50", date(2025, 1, 5))
        self._post(self.materials, self.cash, "79.50", date(2025, 2, 1))
        self._post(self.cash, self.capital, "10.00", date(2025, 2, 3))

        for code in ("1000", "3000", "5000"):
            running = Decimal("0.00")
            rows = GeneralLedgerEntry.objects.filter(
                tenant_id=TENANT, account_code=code, status=GeneralLedgerEntry.ACTIVE
            ).order_by("date", "created_at", "id")
            for row in rows:
                running += row.debit - row.credit
                self.assertEqual(row.balance, running, f"account {code} row {row.entry_number}")

    def test_ledger_row_snapshots_entry_fields(self):
        entry = self._post(self.cash, self.capital, "100.00", date(2025, 7, 15))

        row = GeneralLedgerEntry.objects.get(journal_entry=entry, account_code="1000")
        self.assertEqual(row.entry_number, entry.entry_number)
        self.assertEqual(row.account_name, "Cash Account")
        self.assertEqual(row.account_type, Account.ASSET)
        self.assertEqual(row.transaction_type, JournalEntry.JOURNAL)
        self.assertEqual(row.fiscal_year, 2025)
        self.assertEqual(row.fiscal_period, 7)
        self.assertEqual(row.status, GeneralLedgerEntry.ACTIVE)

    # =====================================================
    # IMMUTABILITY
    # =====================================================

    def test_ledger_rows_cannot_be_edited(self):
        self._post(self.cash, self.capital, "100.00", date(2025, 1, 1))
        row = GeneralLedgerEntry.objects.filter(tenant_id=TENANT).first()

        row.debit = Decimal("1.00")
        with self.assertRaises(DjangoValidationError):
            row.save()

    def test_ledger_rows_cannot_be_deleted(self):
        self._post(self.cash, self.capital, "100.00", date(2025, 1, 1))
        row = GeneralLedgerEntry.objects.filter(tenant_id=TENANT).first()

        with self.assertRaises(DjangoValidationError):
            row.delete()

        self.assertTrue(GeneralLedgerEntry.objects.filter(pk=row.pk).exists())

    # =====================================================
    # VERIFY COMMAND
    # =====================================================

    def test_verify_command_passes_on_consistent_ledger(self):
        self._post(self.cash, self.capital, "100.00", date(2025, 1, 1))
        self._post(self.materials, self.cash, "30.00", date(2025, 1, 2))

        out = StringIO()
        call_command("verify_ledger_balances", "--tenant", TENANT, stdout=out)

        self.assertIn("OK", out.getvalue())
