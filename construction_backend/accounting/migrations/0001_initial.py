"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: INITIAL ACCOUNTING SCHEMA

Creates:
- Account, SubAccount (chart of accounts, tenant-scoped)
- JournalEntry, JournalEntryLine, JournalSequence
- GeneralLedgerEntry (append-only, running balances)
- LedgerPostingTask (posting outbox for business documents)
"""

from __future__ import annotations

from decimal import Decimal

import django.core.serializers.json
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

ACCOUNT_TYPES = [
    ("Asset", "Asset"),
    ("Liability", "Liability"),
    ("Equity", "Equity"),
    ("Revenue", "Revenue"),
    ("Expense", "Expense"),
]

TRANSACTION_TYPES = [
    ("Sale", "Sale"),
    ("Purchase", "Purchase"),
    ("Payment", "Payment"),
    ("Receipt", "Receipt"),
    ("Journal", "Journal"),
    ("Opening Balance", "Opening Balance"),
    ("Adjustment", "Adjustment"),
    ("Booking", "Booking"),
]


def _tenant_id_field():
    return models.CharField(
        db_index=True,
        help_text="Tenant discriminator (leading filter on every query)",
        max_length=64,
    )


def _money_field():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)


def _user_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # --------------------------------------------------
        # Account
        # --------------------------------------------------
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                ("code", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=150)),
                ("account_type", models.CharField(choices=ACCOUNT_TYPES, max_length=20)),
                (
                    "financial_component",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Statement grouping label (Assets, Operating Income, ...)",
                        max_length=50,
                    ),
                ),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="children",
                        to="accounting.account",
                    ),
                ),
                ("created_by", _user_fk()),
            ],
            options={
                "verbose_name": "Account",
                "verbose_name_plural": "Accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["tenant_id", "code"], name="acc_tenant_code_idx"),
                    models.Index(fields=["tenant_id", "account_type"], name="acc_tenant_type_idx"),
                    models.Index(fields=["is_active"], name="acc_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant_id", "code"), name="uniq_account_tenant_code"),
                    models.CheckConstraint(condition=models.Q(("code", ""), _negated=True), name="chk_account_code_not_blank"),
                    models.CheckConstraint(condition=models.Q(("name", ""), _negated=True), name="chk_account_name_not_blank"),
                ],
            },
        ),
        # --------------------------------------------------
        # SubAccount
        # --------------------------------------------------
        migrations.CreateModel(
            name="SubAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                (
                    "kind",
                    models.CharField(
                        choices=[("sub", "Sub-account"), ("list", "List account")],
                        default="sub",
                        max_length=10,
                    ),
                ),
                ("code", models.CharField(max_length=20)),
                ("name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "sub_type",
                    models.CharField(blank=True, default="", help_text="Type label for sub-accounts", max_length=100),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sub_accounts",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Sub-account",
                "verbose_name_plural": "Sub-accounts",
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["tenant_id", "code"], name="subacc_tenant_code_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant_id", "code"), name="uniq_subaccount_tenant_code"),
                    models.CheckConstraint(condition=models.Q(("code", ""), _negated=True), name="chk_subaccount_code_not_blank"),
                ],
            },
        ),
        # --------------------------------------------------
        # JournalEntry
        # --------------------------------------------------
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                ("entry_number", models.CharField(max_length=32)),
                ("date", models.DateField(help_text="Accounting effective date")),
                ("transaction_type", models.CharField(choices=TRANSACTION_TYPES, max_length=30)),
                (
                    "source_model",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("SalesInvoice", "Sales Invoice"),
                            ("Purchase", "Purchase"),
                            ("BankPayment", "Bank Payment"),
                            ("CashPayment", "Cash Payment"),
                            ("Plot", "Plot"),
                            ("Manual", "Manual"),
                        ],
                        default="",
                        max_length=30,
                    ),
                ),
                ("source_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "source_reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Human reference of the source document (invoice no, PO no, ...)",
                        max_length=255,
                    ),
                ),
                (
                    "project",
                    models.CharField(blank=True, default="", help_text="Project reference (external id)", max_length=64),
                ),
                ("description", models.TextField(help_text="Narrative description of the journal entry")),
                ("notes", models.TextField(blank=True, default="")),
                ("total_debit", _money_field()),
                ("total_credit", _money_field()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Draft", "Draft"),
                            ("Posted", "Posted"),
                            ("Reversed", "Reversed"),
                            ("Cancelled", "Cancelled"),
                        ],
                        default="Draft",
                        max_length=20,
                    ),
                ),
                ("is_posted", models.BooleanField(default=False)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "reversal_of",
                    models.OneToOneField(
                        blank=True,
                        help_text="Set on a reversal entry; points at the entry it reverses",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reversed_by",
                        to="accounting.journalentry",
                    ),
                ),
                ("created_by", _user_fk()),
                ("approved_by", _user_fk()),
            ],
            options={
                "verbose_name": "Journal Entry",
                "verbose_name_plural": "Journal Entries",
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["tenant_id", "date"], name="je_tenant_date_idx"),
                    models.Index(fields=["tenant_id", "status"], name="je_tenant_status_idx"),
                    models.Index(fields=["tenant_id", "transaction_type"], name="je_tenant_type_idx"),
                    models.Index(fields=["tenant_id", "project"], name="je_tenant_project_idx"),
                    models.Index(fields=["tenant_id", "source_model", "source_id"], name="je_tenant_source_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant_id", "entry_number"), name="uniq_journal_tenant_entry_number"),
                    models.CheckConstraint(
                        condition=models.Q(("total_debit__gte", 0), ("total_credit__gte", 0)),
                        name="chk_journal_totals_non_negative",
                    ),
                ],
            },
        ),
        # --------------------------------------------------
        # JournalEntryLine
        # --------------------------------------------------
        migrations.CreateModel(
            name="JournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("account_code", models.CharField(max_length=20)),
                ("account_name", models.CharField(max_length=150)),
                ("account_type", models.CharField(choices=ACCOUNT_TYPES, max_length=20)),
                ("debit", _money_field()),
                ("credit", _money_field()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "journal_entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="journal_lines",
                        to="accounting.account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Journal Entry Line",
                "verbose_name_plural": "Journal Entry Lines",
                "ordering": ["journal_entry_id", "line_no"],
                "indexes": [
                    models.Index(fields=["account_code"], name="jel_account_code_idx"),
                    models.Index(fields=["journal_entry", "line_no"], name="jel_entry_line_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("journal_entry", "line_no"), name="uniq_journal_line_no"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("debit__gt", 0), ("credit", 0)),
                            models.Q(("credit__gt", 0), ("debit", 0)),
                            _connector="OR",
                        ),
                        name="chk_journal_line_one_side",
                    ),
                ],
            },
        ),
        # --------------------------------------------------
        # JournalSequence
        # --------------------------------------------------
        migrations.CreateModel(
            name="JournalSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                ("year", models.PositiveIntegerField()),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Journal Sequence",
                "verbose_name_plural": "Journal Sequences",
                "constraints": [
                    models.UniqueConstraint(fields=("tenant_id", "year"), name="uniq_journal_sequence_tenant_year"),
                ],
            },
        ),
        # --------------------------------------------------
        # GeneralLedgerEntry
        # --------------------------------------------------
        migrations.CreateModel(
            name="GeneralLedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                ("account_code", models.CharField(max_length=20)),
                ("account_name", models.CharField(max_length=150)),
                ("account_type", models.CharField(choices=ACCOUNT_TYPES, max_length=20)),
                ("date", models.DateField()),
                ("entry_number", models.CharField(max_length=32)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("transaction_type", models.CharField(choices=TRANSACTION_TYPES, max_length=30)),
                ("project", models.CharField(blank=True, default="", max_length=64)),
                ("debit", _money_field()),
                ("credit", _money_field()),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Running balance (debit - credit) after this row",
                        max_digits=18,
                    ),
                ),
                ("source_model", models.CharField(blank=True, default="", max_length=30)),
                ("source_id", models.CharField(blank=True, default="", max_length=64)),
                ("source_reference", models.CharField(blank=True, default="", max_length=255)),
                ("fiscal_year", models.PositiveIntegerField()),
                ("fiscal_period", models.PositiveSmallIntegerField(help_text="Month 1-12")),
                (
                    "status",
                    models.CharField(
                        choices=[("Active", "Active"), ("Reversed", "Reversed"), ("Cancelled", "Cancelled")],
                        default="Active",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "General Ledger Entry",
                "verbose_name_plural": "General Ledger Entries",
                "ordering": ["date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["tenant_id", "account_code", "date"], name="gl_tenant_acct_date_idx"),
                    models.Index(fields=["tenant_id", "date"], name="gl_tenant_date_idx"),
                    models.Index(fields=["tenant_id", "status"], name="gl_tenant_status_idx"),
                    models.Index(fields=["tenant_id", "project"], name="gl_tenant_project_idx"),
                    models.Index(fields=["tenant_id", "account_type"], name="gl_tenant_type_idx"),
                    models.Index(fields=["tenant_id", "fiscal_year", "fiscal_period"], name="gl_tenant_fiscal_idx"),
                    models.Index(fields=["journal_entry"], name="gl_journal_entry_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_gl_amounts_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("fiscal_period__gte", 1), ("fiscal_period__lte", 12)),
                        name="chk_gl_fiscal_period_range",
                    ),
                ],
            },
        ),
        # --------------------------------------------------
        # LedgerPostingTask
        # --------------------------------------------------
        migrations.CreateModel(
            name="LedgerPostingTask",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("tenant_id", _tenant_id_field()),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("sale", "Sale"),
                            ("purchase", "Purchase"),
                            ("bank_payment", "Bank Payment"),
                            ("cash_payment", "Cash Payment"),
                            ("plot_booking", "Plot Booking"),
                            ("plot_sale", "Plot Sale"),
                            ("payment_receipt", "Payment Receipt"),
                            ("supplier_payment", "Supplier Payment"),
                        ],
                        max_length=30,
                    ),
                ),
                ("source_model", models.CharField(blank=True, default="", max_length=30)),
                ("source_id", models.CharField(blank=True, default="", max_length=64)),
                ("source_reference", models.CharField(blank=True, default="", max_length=255)),
                (
                    "payload",
                    models.JSONField(
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        help_text="Document snapshot the adapter posts from",
                    ),
                ),
                (
                    "ledger_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("posted", "Posted"),
                            ("failed", "Failed"),
                            ("skipped", "Skipped"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("last_error", models.TextField(blank=True, default="")),
                ("last_attempt_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="posting_tasks",
                        to="accounting.journalentry",
                    ),
                ),
                ("created_by", _user_fk()),
            ],
            options={
                "verbose_name": "Ledger Posting Task",
                "verbose_name_plural": "Ledger Posting Tasks",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["tenant_id", "ledger_status"], name="lpt_tenant_status_idx"),
                    models.Index(fields=["ledger_status", "attempts"], name="lpt_status_attempts_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("source_id", ""), _negated=True),
                        fields=("tenant_id", "kind", "source_model", "source_id"),
                        name="uniq_posting_task_document",
                    ),
                ],
            },
        ),
    ]
