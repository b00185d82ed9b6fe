# accounting/tests/test_journal_integrity.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.account_registry import get_or_create_account
from accounting.services.exceptions import (
    InvalidStateError,
    JournalEntryCreationError,
    NotFoundError,
    ValidationError,
)
from accounting.services.journal_entry_service import (
    create_journal_entry,
    delete_draft_journal_entry,
    format_entry_number,
    get_entries_by_account,
    list_journal_entries,
    post_draft_journal_entry,
    update_draft_journal_entry,
)

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"


def _accounts(tenant_id=TENANT):
    cash = get_or_create_account(
        tenant_id=tenant_id, code="1000", name="Cash Account", account_type=Account.ASSET
    )
    revenue = get_or_create_account(
        tenant_id=tenant_id, code="4000", name="Sales Revenue", account_type=Account.REVENUE
    )
    return cash, revenue


def _lines(debit_account, credit_account, debit="100.00", credit=None):
    return [
        {"account": debit_account, "debit": Decimal(debit), "credit": Decimal("0.00")},
        {
            "account": credit_account,
            "debit": Decimal("0.00"),
            "credit": Decimal(credit if credit is not None else debit),
        },
    ]


def _create(tenant_id=TENANT, entry_date=date(2025, 3, 1), **kwargs):
    cash, revenue = _accounts(tenant_id)
    params = {
        "tenant_id": tenant_id,
        "lines": _lines(cash, revenue),
        "date": entry_date,
        "transaction_type": JournalEntry.JOURNAL,
        "description": "Test entry",
    }
    params.update(kwargs)
    return create_journal_entry(**params)


class JournalIntegrityTests(TestCase):
    """
    GUARANTEES
    - Posted entries are balanced and written to the general ledger
    - Invalid lines are rejected before anything is written
    - Entry numbers are sequential per tenant and year
    """

    # =====================================================
    # BALANCE
    # =====================================================

    def test_balanced_entry_is_posted_to_ledger(self):
        entry = _create()

        self.assertEqual(entry.status, JournalEntry.POSTED)
        self.assertTrue(entry.is_posted)
        self.assertIsNotNone(entry.posted_at)
        self.assertEqual(entry.total_debit, Decimal("100.00"))
        self.assertEqual(entry.total_credit, Decimal("100.00"))

        rows = GeneralLedgerEntry.objects.filter(journal_entry=entry)
        self.assertEqual(rows.count(), 2)
        self.assertEqual(sum(r.debit for r in rows), sum(r.credit for r in rows))

    def test_unbalanced_entry_is_rejected_with_both_totals(self):
        cash, revenue = _accounts()

        with self.assertRaises(JournalEntryCreationError) as ctx:
            create_journal_entry(
                tenant_id=TENANT,
                lines=_lines(cash, revenue, debit="100.00", credit="99.00"),
                date=date(2025, 3, 1),
                transaction_type=JournalEntry.JOURNAL,
                description="Unbalanced",
            )

        self.assertIn("not balanced", str(ctx.exception))
        self.assertEqual(ctx.exception.total_debit, Decimal("100.00"))
        self.assertEqual(ctx.exception.total_credit, Decimal("99.00"))
        self.assertEqual(JournalEntry.objects.count(), 0)
        self.assertEqual(GeneralLedgerEntry.objects.count(), 0)

    def test_difference_within_one_cent_is_accepted(self):
        cash, revenue = _accounts()

        entry = create_journal_entry(
            tenant_id=TENANT,
            lines=_lines(cash, revenue, debit="100.00", credit="99.99"),
            date=date(2025, 3, 1),
            transaction_type=JournalEntry.JOURNAL,
            description="Rounding",
        )

        self.assertEqual(entry.total_debit, Decimal("100.00"))
        self.assertEqual(entry.total_credit, Decimal("99.99"))

    # =====================================================
    # LINE VALIDATION
    # =====================================================

    def test_line_with_both_debit_and_credit_is_rejected(self):
        cash, revenue = _accounts()
        lines = [
            {"account": cash, "debit": "100.00", "credit": "100.00"},
            {"account": revenue, "credit": "0.00", "debit": "0.00"},
        ]

        with self.assertRaisesMessage(ValidationError, "Line 1 has both debit and credit"):
            _create(lines=lines)

    def test_line_with_neither_debit_nor_credit_is_rejected(self):
        cash, revenue = _accounts()
        lines = [
            {"account": cash, "debit": "100.00"},
            {"account": revenue},
        ]

        with self.assertRaisesMessage(ValidationError, "Line 2 has neither debit nor credit"):
            _create(lines=lines)

    def test_negative_amount_is_rejected(self):
        cash, revenue = _accounts()
        lines = [
            {"account": cash, "debit": "-100.00"},
            {"account": revenue, "credit": "-100.00"},
        ]

        with self.assertRaisesMessage(ValidationError, "cannot be negative"):
            _create(lines=lines)

    def test_single_line_is_rejected(self):
        cash, _revenue = _accounts()

        with self.assertRaisesMessage(ValidationError, "at least 2 lines"):
            _create(lines=[{"account": cash, "debit": "100.00"}])

    def test_invalid_transaction_type_is_rejected(self):
        with self.assertRaisesMessage(ValidationError, "Invalid transaction type"):
            _create(transaction_type="Barter")

    def test_unknown_account_code_is_rejected(self):
        lines = [
            {"account_code": "9999", "debit": "10.00"},
            {"account_code": "9998", "credit": "10.00"},
        ]

        with self.assertRaisesMessage(ValidationError, "unknown account code"):
            _create(lines=lines)

    def test_account_code_with_name_and_type_is_created_on_first_use(self):
        lines = [
            {
                "account_code": "5000",
                "account_name": "Construction Materials",
                "account_type": Account.EXPENSE,
                "debit": "250.00",
            },
            {
                "account_code": "1000",
                "account_name": "Cash Account",
                "account_type": Account.ASSET,
                "credit": "250.00",
            },
        ]

        entry = _create(lines=lines)

        materials = Account.objects.get(tenant_id=TENANT, code="5000")
        self.assertEqual(materials.account_type, Account.EXPENSE)
        self.assertTrue(entry.lines.filter(account=materials, debit=Decimal("250.00")).exists())

    def test_account_from_another_tenant_is_rejected(self):
        foreign_cash, foreign_revenue = _accounts(OTHER_TENANT)

        with self.assertRaisesMessage(ValidationError, "belongs to another tenant"):
            _create(lines=_lines(foreign_cash, foreign_revenue))

    # =====================================================
    # NUMBERING
    # =====================================================

    def test_entry_numbers_are_sequential_per_year(self):
        first = _create()
        second = _create()
        next_year = _create(entry_date=date(2026, 1, 5))

        self.assertEqual(first.entry_number, "JE-2025-000001")
        self.assertEqual(second.entry_number, "JE-2025-000002")
        self.assertEqual(next_year.entry_number, "JE-2026-000001")

    def test_entry_numbers_are_independent_per_tenant(self):
        a = _create(tenant_id=TENANT)
        b = _create(tenant_id=OTHER_TENANT)

        self.assertEqual(a.entry_number, "JE-2025-000001")
        self.assertEqual(b.entry_number, "JE-2025-000001")

    def test_format_entry_number_pads_to_six_digits(self):
        self.assertEqual(format_entry_number(2025, 42), "JE-2025-000042")


class DraftLifecycleTests(TestCase):
    """
    GUARANTEES
    - Drafts never touch the general ledger
    - Only drafts can be edited, posted or deleted
    """

    def test_draft_has_no_ledger_rows(self):
        entry = _create(status=JournalEntry.DRAFT)

        self.assertEqual(entry.status, JournalEntry.DRAFT)
        self.assertFalse(entry.is_posted)
        self.assertFalse(GeneralLedgerEntry.objects.filter(journal_entry=entry).exists())

    def test_posting_a_draft_writes_ledger_rows(self):
        entry = _create(status=JournalEntry.DRAFT)

        posted = post_draft_journal_entry(tenant_id=TENANT, entry_id=entry.pk)

        self.assertEqual(posted.status, JournalEntry.POSTED)
        self.assertTrue(posted.is_posted)
        self.assertEqual(GeneralLedgerEntry.objects.filter(journal_entry=entry).count(), 2)

    def test_posting_a_posted_entry_is_rejected(self):
        entry = _create()

        with self.assertRaises(InvalidStateError) as ctx:
            post_draft_journal_entry(tenant_id=TENANT, entry_id=entry.pk)

        self.assertEqual(ctx.exception.current_state, JournalEntry.POSTED)
        self.assertEqual(ctx.exception.required_state, JournalEntry.DRAFT)

    def test_updating_a_draft_replaces_lines_and_totals(self):
        entry = _create(status=JournalEntry.DRAFT)
        cash, revenue = _accounts()

        updated = update_draft_journal_entry(
            tenant_id=TENANT,
            entry_id=entry.pk,
            description="Corrected",
            lines=_lines(cash, revenue, debit="250.00"),
        )

        self.assertEqual(updated.description, "Corrected")
        self.assertEqual(updated.total_debit, Decimal("250.00"))
        self.assertEqual(JournalEntryLine.objects.filter(journal_entry=entry).count(), 2)

    def test_updating_a_posted_entry_is_rejected(self):
        entry = _create()

        with self.assertRaises(InvalidStateError):
            update_draft_journal_entry(tenant_id=TENANT, entry_id=entry.pk, description="Nope")

    def test_deleting_a_draft_removes_it(self):
        entry = _create(status=JournalEntry.DRAFT)

        delete_draft_journal_entry(tenant_id=TENANT, entry_id=entry.pk)

        self.assertFalse(JournalEntry.objects.filter(pk=entry.pk).exists())

    def test_deleting_a_posted_entry_is_rejected(self):
        entry = _create()

        with self.assertRaises(InvalidStateError):
            delete_draft_journal_entry(tenant_id=TENANT, entry_id=entry.pk)

        self.assertTrue(JournalEntry.objects.filter(pk=entry.pk).exists())

    def test_entry_from_another_tenant_is_not_found(self):
        entry = _create(status=JournalEntry.DRAFT)

        with self.assertRaises(NotFoundError):
            post_draft_journal_entry(tenant_id=OTHER_TENANT, entry_id=entry.pk)

    def test_new_entries_cannot_start_reversed(self):
        with self.assertRaises(ValidationError):
            _create(status=JournalEntry.REVERSED)


class JournalQueryTests(TestCase):
    def test_entries_by_account_returns_posted_entries_touching_the_code(self):
        posted = _create(entry_date=date(2025, 2, 1))
        _create(entry_date=date(2025, 2, 2), status=JournalEntry.DRAFT)

        entries = list(get_entries_by_account(tenant_id=TENANT, account_code="1000"))

        self.assertEqual(entries, [posted])

    def test_list_filters_by_date_range_and_project(self):
        _create(entry_date=date(2025, 1, 10), project="P-1")
        in_range = _create(entry_date=date(2025, 2, 10), project="P-1")
        _create(entry_date=date(2025, 2, 11), project="P-2")

        entries = list(
            list_journal_entries(
                tenant_id=TENANT,
                start_date="2025-02-01",
                end_date="2025-02-28",
                project="P-1",
            )
        )

        self.assertEqual(entries, [in_range])
