# accounting/tests/test_ledger_outbox.py

from __future__ import annotations

from datetime import date
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings

from accounting.models.journal import JournalEntry
from accounting.models.posting_task import LedgerPostingTask
from accounting.services.exceptions import ValidationError
from accounting.services.ledger_outbox import (
    record_document_posting,
    replay_pending_postings,
    replay_posting_task,
)

TENANT = "tenant-a"
OUTBOX_LOGGER = "accounting.services.ledger_outbox"


def _sale(**overrides):
    sale = {
        "id": 42,
        "serial_no": "SI-0042",
        "customer_name": "Ahmed Builders",
        "date": date(2025, 2, 1),
        "net_total": "1000.00",
        "amount_received": "400.00",
        "balance": "600.00",
    }
    sale.update(overrides)
    return sale


class LedgerOutboxTests(TestCase):
    """
    GUARANTEES
    - Document postings never raise to the caller
    - Every outcome is recorded on a task (posted / skipped / failed)
    - A document is posted at most once per kind
    """

    def test_successful_posting_links_the_entry(self):
        task = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
        )

        self.assertEqual(task.ledger_status, LedgerPostingTask.POSTED)
        self.assertEqual(task.attempts, 1)
        self.assertEqual(task.source_model, JournalEntry.SOURCE_SALES_INVOICE)
        self.assertEqual(task.source_id, "42")
        self.assertEqual(task.source_reference, "SI-0042")
        self.assertIsNotNone(task.journal_entry)
        self.assertEqual(task.journal_entry.source_reference, "SI-0042")

    def test_payload_is_json_safe(self):
        task = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
        )

        self.assertEqual(task.payload["date"], "2025-02-01")

    def test_failed_posting_is_recorded_not_raised(self):
        with self.assertLogs(OUTBOX_LOGGER, level="ERROR"):
            task = record_document_posting(
                tenant_id=TENANT,
                kind=LedgerPostingTask.KIND_SALE,
                snapshot=_sale(balance="500.00"),
            )

        self.assertEqual(task.ledger_status, LedgerPostingTask.FAILED)
        self.assertEqual(task.attempts, 1)
        self.assertIn("not balanced", task.last_error)
        self.assertIsNone(task.journal_entry)
        self.assertFalse(JournalEntry.objects.exists())

    def test_adapter_returning_nothing_is_skipped(self):
        task = record_document_posting(
            tenant_id=TENANT,
            kind=LedgerPostingTask.KIND_PLOT_BOOKING,
            snapshot={"id": 1, "plot_number": "A-1", "final_price": "0"},
        )

        self.assertEqual(task.ledger_status, LedgerPostingTask.SKIPPED)
        self.assertTrue(task.is_done)

    def test_second_save_does_not_post_twice(self):
        first = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
        )
        second = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale(net_total="2000.00")
        )

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(LedgerPostingTask.objects.count(), 1)

    def test_resaved_document_replaces_failed_snapshot(self):
        with self.assertLogs(OUTBOX_LOGGER, level="ERROR"):
            record_document_posting(
                tenant_id=TENANT,
                kind=LedgerPostingTask.KIND_SALE,
                snapshot=_sale(balance="500.00"),
            )

        task = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
        )

        self.assertEqual(task.ledger_status, LedgerPostingTask.POSTED)
        self.assertEqual(task.attempts, 2)
        self.assertEqual(task.payload["balance"], "600.00")

    def test_unknown_kind_is_a_caller_error(self):
        with self.assertRaises(ValidationError):
            record_document_posting(tenant_id=TENANT, kind="invoice", snapshot=_sale())

    # =====================================================
    # REPLAY
    # =====================================================

    @override_settings(ACCOUNTING_POSTING_ENABLED=False)
    def test_disabled_posting_leaves_task_pending(self):
        task = record_document_posting(
            tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
        )

        self.assertEqual(task.ledger_status, LedgerPostingTask.PENDING)
        self.assertEqual(task.attempts, 0)
        self.assertFalse(JournalEntry.objects.exists())

    def test_replay_posts_pending_tasks(self):
        with self.settings(ACCOUNTING_POSTING_ENABLED=False):
            record_document_posting(
                tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
            )

        summary = replay_pending_postings(tenant_id=TENANT)

        self.assertEqual(summary[LedgerPostingTask.POSTED], 1)
        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(
            LedgerPostingTask.objects.get().ledger_status, LedgerPostingTask.POSTED
        )

    def test_replay_stops_at_max_attempts(self):
        with self.assertLogs(OUTBOX_LOGGER, level="ERROR"):
            task = record_document_posting(
                tenant_id=TENANT,
                kind=LedgerPostingTask.KIND_SALE,
                snapshot=_sale(balance="500.00"),
            )
            task = replay_posting_task(task)
            task = replay_posting_task(task)

        self.assertEqual(task.attempts, 3)

        task = replay_posting_task(task)

        self.assertEqual(task.attempts, 3)
        self.assertEqual(task.ledger_status, LedgerPostingTask.FAILED)
        self.assertEqual(replay_pending_postings(tenant_id=TENANT)[LedgerPostingTask.FAILED], 0)

    def test_replay_command_dry_run_lists_tasks(self):
        with self.settings(ACCOUNTING_POSTING_ENABLED=False):
            record_document_posting(
                tenant_id=TENANT, kind=LedgerPostingTask.KIND_SALE, snapshot=_sale()
            )

        out = StringIO()
        call_command("replay_ledger_postings", "--tenant", TENANT, "--dry-run", stdout=out)

        self.assertIn("SI-0042", out.getvalue())
        self.assertEqual(
            LedgerPostingTask.objects.get().ledger_status, LedgerPostingTask.PENDING
        )
