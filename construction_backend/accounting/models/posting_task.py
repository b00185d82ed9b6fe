# accounting/models/posting_task.py

"""
======================================================
PATH: accounting/models/posting_task.py
======================================================
LEDGER POSTING TASK (OUTBOX)

One row per business document that should produce a journal entry
(sale, purchase, payment, plot booking/sale, ...).

ledger_status is the "posted to ledger?" flag operators look at:
- pending : recorded, not attempted yet (or posting disabled)
- posted  : journal entry created (journal_entry set)
- skipped : adapter decided no entry was warranted (e.g. zero-amount plot sale)
- failed  : last attempt raised; last_error holds the reason

Guarantees:
- A document is posted at most once per kind
  (unique tenant/kind/source_model/source_id when source_id is set)
"""

from __future__ import annotations

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Q

from accounting.models.journal import JournalEntry
from accounting.models.tenant import TenantManager, tenant_id_field


class LedgerPostingTask(models.Model):
    KIND_SALE = "sale"
    KIND_PURCHASE = "purchase"
    KIND_BANK_PAYMENT = "bank_payment"
    KIND_CASH_PAYMENT = "cash_payment"
    KIND_PLOT_BOOKING = "plot_booking"
    KIND_PLOT_SALE = "plot_sale"
    KIND_PAYMENT_RECEIPT = "payment_receipt"
    KIND_SUPPLIER_PAYMENT = "supplier_payment"

    KINDS = [
        (KIND_SALE, "Sale"),
        (KIND_PURCHASE, "Purchase"),
        (KIND_BANK_PAYMENT, "Bank Payment"),
        (KIND_CASH_PAYMENT, "Cash Payment"),
        (KIND_PLOT_BOOKING, "Plot Booking"),
        (KIND_PLOT_SALE, "Plot Sale"),
        (KIND_PAYMENT_RECEIPT, "Payment Receipt"),
        (KIND_SUPPLIER_PAYMENT, "Supplier Payment"),
    ]

    PENDING = "pending"
    POSTED = "posted"
    FAILED = "failed"
    SKIPPED = "skipped"

    LEDGER_STATUSES = [
        (PENDING, "Pending"),
        (POSTED, "Posted"),
        (FAILED, "Failed"),
        (SKIPPED, "Skipped"),
    ]

    tenant_id = tenant_id_field()

    kind = models.CharField(max_length=30, choices=KINDS)
    source_model = models.CharField(max_length=30, blank=True, default="")
    source_id = models.CharField(max_length=64, blank=True, default="")
    source_reference = models.CharField(max_length=255, blank=True, default="")

    payload = models.JSONField(
        encoder=DjangoJSONEncoder,
        default=dict,
        help_text="Document snapshot the adapter posts from",
    )

    ledger_status = models.CharField(max_length=20, choices=LEDGER_STATUSES, default=PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    last_attempt_at = models.DateTimeField(null=True, blank=True)

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posting_tasks",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["tenant_id", "ledger_status"], name="lpt_tenant_status_idx"),
            models.Index(fields=["ledger_status", "attempts"], name="lpt_status_attempts_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "kind", "source_model", "source_id"],
                condition=~Q(source_id=""),
                name="uniq_posting_task_document",
            ),
        ]
        verbose_name = "Ledger Posting Task"
        verbose_name_plural = "Ledger Posting Tasks"

    def __str__(self):
        ref = self.source_reference or self.source_id or f"#{self.pk}"
        return f"{self.kind} {ref} [{self.ledger_status}]"

    @property
    def is_done(self) -> bool:
        return self.ledger_status in (self.POSTED, self.SKIPPED)
