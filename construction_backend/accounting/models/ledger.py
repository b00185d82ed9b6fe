# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
GENERAL LEDGER ENTRY MODEL

One posted fact: a single journal line applied to a single account.

Guarantees:
- Append-only: no deletes; the only allowed update is the status
  transition Active -> Reversed (done by the reversal path)
- balance is the account's running balance at posting time,
  computed as previous + debit - credit (no sign flip by account type)
- fiscal_year / fiscal_period are derived from date at creation
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.tenant import TenantManager, tenant_id_field


class GeneralLedgerEntry(models.Model):
    ACTIVE = "Active"
    REVERSED = "Reversed"
    CANCELLED = "Cancelled"

    STATUSES = [
        (ACTIVE, "Active"),
        (REVERSED, "Reversed"),
        (CANCELLED, "Cancelled"),
    ]

    tenant_id = tenant_id_field()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    account_code = models.CharField(max_length=20)
    account_name = models.CharField(max_length=150)
    account_type = models.CharField(max_length=20, choices=Account.ACCOUNT_TYPES)

    date = models.DateField()

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    entry_number = models.CharField(max_length=32)

    description = models.CharField(max_length=255, blank=True, default="")
    transaction_type = models.CharField(max_length=30, choices=JournalEntry.TRANSACTION_TYPES)
    project = models.CharField(max_length=64, blank=True, default="")

    debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        help_text="Running balance (debit - credit) after this row",
    )

    source_model = models.CharField(max_length=30, blank=True, default="")
    source_id = models.CharField(max_length=64, blank=True, default="")
    source_reference = models.CharField(max_length=255, blank=True, default="")

    fiscal_year = models.PositiveIntegerField()
    fiscal_period = models.PositiveSmallIntegerField(help_text="Month 1-12")

    status = models.CharField(max_length=20, choices=STATUSES, default=ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        verbose_name = "General Ledger Entry"
        verbose_name_plural = "General Ledger Entries"
        ordering = ["date", "created_at", "id"]
        indexes = [
            models.Index(fields=["tenant_id", "account_code", "date"], name="gl_tenant_acct_date_idx"),
            models.Index(fields=["tenant_id", "date"], name="gl_tenant_date_idx"),
            models.Index(fields=["tenant_id", "status"], name="gl_tenant_status_idx"),
            models.Index(fields=["tenant_id", "project"], name="gl_tenant_project_idx"),
            models.Index(fields=["tenant_id", "account_type"], name="gl_tenant_type_idx"),
            models.Index(fields=["tenant_id", "fiscal_year", "fiscal_period"], name="gl_tenant_fiscal_idx"),
            models.Index(fields=["journal_entry"], name="gl_journal_entry_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_gl_amounts_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(fiscal_period__gte=1) & Q(fiscal_period__lte=12),
                name="chk_gl_fiscal_period_range",
            ),
        ]

    def __str__(self):
        return f"{self.entry_number} {self.account_code} Dr {self.debit} Cr {self.credit}"

    def clean(self):
        if self.debit is None or self.credit is None:
            raise ValidationError("Ledger debit/credit are required")
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Ledger amounts cannot be negative")

        if self.date:
            self.fiscal_year = self.date.year
            self.fiscal_period = self.date.month

    def save(self, *args, **kwargs):
        if self.pk:
            update_fields = kwargs.get("update_fields")
            if not update_fields or set(update_fields) != {"status"}:
                raise ValidationError("GeneralLedgerEntry records are immutable (status only)")
            return super().save(*args, **kwargs)

        if self.date:
            self.fiscal_year = self.date.year
            self.fiscal_period = self.date.month

        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("GeneralLedgerEntry records are append-only and cannot be deleted")
