# accounting/services/ledger_outbox.py

"""
======================================================
PATH: accounting/services/ledger_outbox.py
======================================================
LEDGER POSTING OUTBOX

Side-effect posting for master documents (invoices, purchases, payments,
plots). The document save must never fail because its journal entry
could not be created, and a failed posting must never be invisible.

Flow:
1) record_document_posting() stores a LedgerPostingTask (pending) with a
   JSON snapshot of the document
2) the adapter runs inside a savepoint
3) outcome is recorded on the task:
   - posted  (+ journal_entry)
   - skipped (adapter returned None)
   - failed  (+ last_error, attempts += 1)
4) replay_pending_postings() retries pending/failed tasks until
   ACCOUNTING_MAX_POSTING_ATTEMPTS is reached

Guarantees:
- A document is posted at most once per kind (task uniqueness + early
  return for tasks already posted/skipped)
- Adapter errors are logged, stored, and NOT raised to the caller
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry
from accounting.models.posting_task import LedgerPostingTask
from accounting.services.exceptions import ValidationError
from accounting.services.posting import ADAPTERS
from accounting.services.tenancy import require_tenant_id

logger = logging.getLogger(__name__)

LAST_ERROR_MAX_LENGTH = 2000

# kind -> (source model, snapshot field holding the human reference)
DOCUMENT_SOURCES = {
    LedgerPostingTask.KIND_SALE: (JournalEntry.SOURCE_SALES_INVOICE, "serial_no"),
    LedgerPostingTask.KIND_PURCHASE: (JournalEntry.SOURCE_PURCHASE, "purchase_order_no"),
    LedgerPostingTask.KIND_BANK_PAYMENT: (JournalEntry.SOURCE_BANK_PAYMENT, "serial_no"),
    LedgerPostingTask.KIND_CASH_PAYMENT: (JournalEntry.SOURCE_CASH_PAYMENT, "serial_no"),
    LedgerPostingTask.KIND_PLOT_BOOKING: (JournalEntry.SOURCE_PLOT, "plot_number"),
    LedgerPostingTask.KIND_PLOT_SALE: (JournalEntry.SOURCE_PLOT, "plot_number"),
    LedgerPostingTask.KIND_PAYMENT_RECEIPT: (JournalEntry.SOURCE_MANUAL, "reference"),
    LedgerPostingTask.KIND_SUPPLIER_PAYMENT: (JournalEntry.SOURCE_MANUAL, "reference"),
}


def _max_attempts() -> int:
    return int(getattr(settings, "ACCOUNTING_MAX_POSTING_ATTEMPTS", 5))


def _posting_enabled() -> bool:
    return bool(getattr(settings, "ACCOUNTING_POSTING_ENABLED", True))


def _snapshot_payload(snapshot) -> dict:
    if isinstance(snapshot, dict):
        data = dict(snapshot)
    else:
        data = {k: v for k, v in vars(snapshot).items() if not k.startswith("_")}
    # Round-trip through the encoder so the payload is what replay will read.
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def _document_key(kind: str, payload: dict) -> tuple[str, str, str]:
    source_model, reference_field = DOCUMENT_SOURCES[kind]
    reference = str(payload.get(reference_field) or "").strip()
    source_id = payload.get("id")
    source_id = str(source_id).strip() if source_id not in (None, "") else reference
    return source_model, source_id, reference


def _get_or_create_task(*, tenant_id, kind, payload, user) -> LedgerPostingTask:
    source_model, source_id, reference = _document_key(kind, payload)

    if source_id:
        existing = (
            LedgerPostingTask.objects.for_tenant(tenant_id)
            .filter(kind=kind, source_model=source_model, source_id=source_id)
            .first()
        )
        if existing is not None:
            return existing

    try:
        with transaction.atomic():
            return LedgerPostingTask.objects.create(
                tenant_id=tenant_id,
                kind=kind,
                source_model=source_model,
                source_id=source_id,
                source_reference=reference,
                payload=payload,
                created_by=user,
            )
    except IntegrityError:
        return LedgerPostingTask.objects.for_tenant(tenant_id).get(
            kind=kind, source_model=source_model, source_id=source_id
        )


def _run_task(task: LedgerPostingTask, *, user=None) -> LedgerPostingTask:
    adapter = ADAPTERS[task.kind]
    task.attempts += 1
    task.last_attempt_at = timezone.now()

    try:
        with transaction.atomic():
            entry = adapter(task.payload, tenant_id=task.tenant_id, user=user)
    except Exception as exc:
        logger.exception(
            "Ledger posting failed",
            extra={
                "tenant_id": task.tenant_id,
                "kind": task.kind,
                "source_id": task.source_id,
                "attempts": task.attempts,
            },
        )
        task.ledger_status = LedgerPostingTask.FAILED
        task.last_error = f"{type(exc).__name__}: {exc}"[:LAST_ERROR_MAX_LENGTH]
    else:
        if entry is None:
            task.ledger_status = LedgerPostingTask.SKIPPED
        else:
            task.ledger_status = LedgerPostingTask.POSTED
            task.journal_entry = entry
        task.last_error = ""
        logger.info(
            "Ledger posting recorded",
            extra={
                "tenant_id": task.tenant_id,
                "kind": task.kind,
                "source_id": task.source_id,
                "ledger_status": task.ledger_status,
                "entry_number": getattr(entry, "entry_number", ""),
            },
        )

    task.save(
        update_fields=[
            "attempts",
            "last_attempt_at",
            "ledger_status",
            "last_error",
            "journal_entry",
            "updated_at",
        ]
    )
    return task


def record_document_posting(*, tenant_id, kind: str, snapshot, user=None) -> LedgerPostingTask:
    """
    Called from a document's save path (after the document itself is saved).

    Returns the task; inspect task.ledger_status for the outcome.
    Raises ValidationError only for caller bugs (missing tenant, unknown kind).
    """
    tenant_id = require_tenant_id(tenant_id)
    if kind not in ADAPTERS:
        raise ValidationError(f"Unknown posting kind: {kind!r}")

    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    payload = _snapshot_payload(snapshot)
    task = _get_or_create_task(tenant_id=tenant_id, kind=kind, payload=payload, user=user)

    if task.is_done:
        return task

    # A re-saved document replaces the snapshot of a task that never posted.
    if task.payload != payload:
        task.payload = payload
        task.save(update_fields=["payload", "updated_at"])

    if not _posting_enabled():
        logger.info(
            "Ledger posting disabled; task left pending",
            extra={"tenant_id": tenant_id, "kind": kind, "source_id": task.source_id},
        )
        return task

    return _run_task(task, user=user)


def replay_posting_task(task: LedgerPostingTask) -> LedgerPostingTask:
    """Retry one task. Done tasks and tasks at the attempt cap are returned unchanged."""
    if task.is_done or task.attempts >= _max_attempts():
        return task
    return _run_task(task, user=task.created_by)


def pending_posting_tasks(*, tenant_id=None):
    qs = LedgerPostingTask.objects.filter(
        ledger_status__in=[LedgerPostingTask.PENDING, LedgerPostingTask.FAILED],
        attempts__lt=_max_attempts(),
    )
    if tenant_id:
        qs = qs.filter(tenant_id=require_tenant_id(tenant_id))
    return qs.order_by("created_at", "id")


def replay_pending_postings(*, tenant_id=None, limit: int | None = None) -> dict:
    qs = pending_posting_tasks(tenant_id=tenant_id).select_related("created_by")
    if limit:
        qs = qs[:limit]

    summary = {
        LedgerPostingTask.POSTED: 0,
        LedgerPostingTask.SKIPPED: 0,
        LedgerPostingTask.FAILED: 0,
    }
    for task in qs:
        task = replay_posting_task(task)
        if task.ledger_status in summary:
            summary[task.ledger_status] += 1

    return summary
