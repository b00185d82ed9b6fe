# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODELS

JournalEntry: a single accounting transaction (journal header).
JournalEntryLine: one debit-or-credit line against an account.
JournalSequence: per-tenant, per-year counter for entry numbers.

Guarantees:
- Entry numbers are unique per tenant (JE-<year>-<6 digits>)
- Lines carry exactly one of debit > 0 / credit > 0 (DB constraint)
- Only Draft entries may be deleted; Posted/Reversed entries change
  through the journal entry service only (status transitions)
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.tenant import TenantManager, tenant_id_field


class JournalEntry(models.Model):
    # Transaction types
    SALE = "Sale"
    PURCHASE = "Purchase"
    PAYMENT = "Payment"
    RECEIPT = "Receipt"
    JOURNAL = "Journal"
    OPENING_BALANCE = "Opening Balance"
    ADJUSTMENT = "Adjustment"
    BOOKING = "Booking"

    TRANSACTION_TYPES = [
        (SALE, "Sale"),
        (PURCHASE, "Purchase"),
        (PAYMENT, "Payment"),
        (RECEIPT, "Receipt"),
        (JOURNAL, "Journal"),
        (OPENING_BALANCE, "Opening Balance"),
        (ADJUSTMENT, "Adjustment"),
        (BOOKING, "Booking"),
    ]

    # Source documents
    SOURCE_SALES_INVOICE = "SalesInvoice"
    SOURCE_PURCHASE = "Purchase"
    SOURCE_BANK_PAYMENT = "BankPayment"
    SOURCE_CASH_PAYMENT = "CashPayment"
    SOURCE_PLOT = "Plot"
    SOURCE_MANUAL = "Manual"

    SOURCE_MODELS = [
        (SOURCE_SALES_INVOICE, "Sales Invoice"),
        (SOURCE_PURCHASE, "Purchase"),
        (SOURCE_BANK_PAYMENT, "Bank Payment"),
        (SOURCE_CASH_PAYMENT, "Cash Payment"),
        (SOURCE_PLOT, "Plot"),
        (SOURCE_MANUAL, "Manual"),
    ]

    # Lifecycle
    DRAFT = "Draft"
    POSTED = "Posted"
    REVERSED = "Reversed"
    CANCELLED = "Cancelled"

    STATUSES = [
        (DRAFT, "Draft"),
        (POSTED, "Posted"),
        (REVERSED, "Reversed"),
        (CANCELLED, "Cancelled"),
    ]

    tenant_id = tenant_id_field()

    entry_number = models.CharField(max_length=32)
    date = models.DateField(help_text="Accounting effective date")

    transaction_type = models.CharField(max_length=30, choices=TRANSACTION_TYPES)

    source_model = models.CharField(
        max_length=30,
        choices=SOURCE_MODELS,
        blank=True,
        default="",
    )
    source_id = models.CharField(max_length=64, blank=True, default="")
    source_reference = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Human reference of the source document (invoice no, PO no, ...)",
    )

    project = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Project reference (external id)",
    )

    description = models.TextField(help_text="Narrative description of the journal entry")
    notes = models.TextField(blank=True, default="")

    total_debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    total_credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUSES, default=DRAFT)
    is_posted = models.BooleanField(default=False)
    posted_at = models.DateTimeField(null=True, blank=True)

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
        help_text="Set on a reversal entry; points at the entry it reverses",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant_id", "date"], name="je_tenant_date_idx"),
            models.Index(fields=["tenant_id", "status"], name="je_tenant_status_idx"),
            models.Index(fields=["tenant_id", "transaction_type"], name="je_tenant_type_idx"),
            models.Index(fields=["tenant_id", "project"], name="je_tenant_project_idx"),
            models.Index(fields=["tenant_id", "source_model", "source_id"], name="je_tenant_source_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "entry_number"],
                name="uniq_journal_tenant_entry_number",
            ),
            models.CheckConstraint(
                condition=Q(total_debit__gte=0) & Q(total_credit__gte=0),
                name="chk_journal_totals_non_negative",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.entry_number} – {self.date}"

    @property
    def is_draft(self) -> bool:
        return self.status == self.DRAFT

    def clean(self):
        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

        self.source_reference = (self.source_reference or "").strip()
        self.project = (self.project or "").strip()

        if self.reversal_of_id and self.reversal_of.tenant_id != self.tenant_id:
            raise ValidationError("Reversal must belong to the same tenant as the original entry")

    def save(self, *args, **kwargs):
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.DRAFT:
            raise ValidationError("Only Draft journal entries can be deleted")
        return super().delete(*args, **kwargs)


class JournalEntryLine(models.Model):
    """
    One side of a journal entry.

    account_code / account_name / account_type are a snapshot taken when the
    line is written; later account renames do not rewrite history.
    """

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )
    account_code = models.CharField(max_length=20)
    account_name = models.CharField(max_length=150)
    account_type = models.CharField(max_length=20, choices=Account.ACCOUNT_TYPES)

    debit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))

    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["journal_entry_id", "line_no"]
        indexes = [
            models.Index(fields=["account_code"], name="jel_account_code_idx"),
            models.Index(fields=["journal_entry", "line_no"], name="jel_entry_line_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["journal_entry", "line_no"],
                name="uniq_journal_line_no",
            ),
            models.CheckConstraint(
                condition=(Q(debit__gt=0) & Q(credit=0)) | (Q(credit__gt=0) & Q(debit=0)),
                name="chk_journal_line_one_side",
            ),
        ]
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account_code} {side}"


class JournalSequence(models.Model):
    """
    Atomic entry-number counter, one row per (tenant, year).

    Incremented under select_for_update by the journal entry service.
    """

    tenant_id = tenant_id_field()
    year = models.PositiveIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    objects = TenantManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "year"],
                name="uniq_journal_sequence_tenant_year",
            ),
        ]
        verbose_name = "Journal Sequence"
        verbose_name_plural = "Journal Sequences"

    def __str__(self):
        return f"{self.tenant_id}/{self.year}: {self.last_value}"
