# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create / edit / delete JournalEntry and JournalEntryLine
- Enforce debit == credit (tolerance 0.01)
- Assign entry numbers (JE-<year>-<6 digits>, per tenant per year)
- Trigger general ledger posting
- Reverse posted entries

Everything else (adapters, API, commands) must pass through here.

Atomicity:
- Entry + lines + ledger rows are written in one transaction.
- Validation failures are raised before any write.
- Database failures surface as InfrastructureError.
"""

from __future__ import annotations

import logging
from datetime import date as date_cls, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.models.account import Account
from accounting.models.journal import JournalEntry, JournalEntryLine, JournalSequence
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.account_registry import find_account_by_code, get_or_create_account
from accounting.services.exceptions import (
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from accounting.services.ledger_posting import post_to_general_ledger
from accounting.services.tenancy import require_tenant_id

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
BALANCE_TOLERANCE = Decimal("0.01")
MIN_LINES = 2

ENTRY_NUMBER_PREFIX = "JE"
LINE_DESCRIPTION_MAX_LENGTH = 255

_VALID_TRANSACTION_TYPES = {value for value, _label in JournalEntry.TRANSACTION_TYPES}
_VALID_SOURCE_MODELS = {value for value, _label in JournalEntry.SOURCE_MODELS}


# ============================================================
# Normalization helpers
# ============================================================


def _money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise ValidationError(f"Invalid money value: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_date(value) -> date_cls:
    if value is None or value == "":
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    if isinstance(value, date_cls):
        return value

    parsed = parse_date(str(value).strip()[:10])
    if parsed is None:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return parsed


def _normalize_source(source) -> dict:
    if not source:
        return {"model": "", "id": "", "reference": ""}

    if not isinstance(source, dict):
        raise ValidationError("source must be a mapping with model / id / reference")

    model = (source.get("model") or "").strip()
    if model and model not in _VALID_SOURCE_MODELS:
        raise ValidationError(f"Invalid source model: {model!r}")

    source_id = source.get("id")
    return {
        "model": model,
        "id": "" if source_id is None else str(source_id).strip(),
        "reference": (str(source.get("reference") or "")).strip(),
    }


def _validate_header(*, transaction_type: str, description: str) -> str:
    if transaction_type not in _VALID_TRANSACTION_TYPES:
        raise ValidationError(f"Invalid transaction type: {transaction_type!r}")

    description = (description or "").strip()
    if not description:
        raise ValidationError("Journal entry description is required")
    return description


def _parse_lines(lines) -> tuple[list[dict], Decimal, Decimal]:
    """
    Pure validation pass (no DB access).

    Returns parsed lines plus totals; raises ValidationError on:
    - fewer than two lines
    - negative amounts
    - a line with both debit and credit / neither
    - |total_debit - total_credit| > 0.01
    """
    if not isinstance(lines, (list, tuple)) or not lines:
        raise ValidationError("Journal entry must contain lines")
    if len(lines) < MIN_LINES:
        raise ValidationError(f"Journal entry must contain at least {MIN_LINES} lines")

    parsed: list[dict] = []
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")

    for idx, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            raise ValidationError(f"Line {idx} must be an object/dict")

        account = line.get("account")
        account_code = (str(line.get("account_code") or "")).strip()
        if account is None and not account_code:
            raise ValidationError(f"Line {idx} is missing an account")

        debit = _money(line.get("debit"))
        credit = _money(line.get("credit"))

        if debit < 0 or credit < 0:
            raise ValidationError(f"Line {idx}: debit or credit cannot be negative")
        if debit > 0 and credit > 0:
            raise ValidationError(f"Line {idx} has both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError(f"Line {idx} has neither debit nor credit")

        total_debit += debit
        total_credit += credit

        parsed.append(
            {
                "account": account,
                "account_code": account_code,
                "account_name": (line.get("account_name") or "").strip(),
                "account_type": (line.get("account_type") or "").strip(),
                "debit": debit,
                "credit": credit,
                "description": (line.get("description") or "").strip()[:LINE_DESCRIPTION_MAX_LENGTH],
            }
        )

    _assert_balanced(total_debit, total_credit)
    return parsed, total_debit, total_credit


def _assert_balanced(total_debit: Decimal, total_credit: Decimal) -> None:
    if abs(total_debit - total_credit) > BALANCE_TOLERANCE:
        raise ValidationError(
            f"Journal entry is not balanced: total debit {total_debit} != total credit {total_credit}",
            total_debit=total_debit,
            total_credit=total_credit,
        )


def _resolve_line_accounts(*, tenant_id: str, parsed_lines: list[dict], created_by=None) -> list[dict]:
    resolved: list[dict] = []

    for idx, line in enumerate(parsed_lines, start=1):
        account = line["account"]

        if account is not None:
            if not isinstance(account, Account):
                raise ValidationError(f"Line {idx}: account must be an Account instance")
            if account.tenant_id != tenant_id:
                raise ValidationError(f"Line {idx}: account {account.code} belongs to another tenant")
        elif line["account_name"] and line["account_type"]:
            account = get_or_create_account(
                tenant_id=tenant_id,
                code=line["account_code"],
                name=line["account_name"],
                account_type=line["account_type"],
                created_by=created_by,
            )
        else:
            account = find_account_by_code(tenant_id=tenant_id, code=line["account_code"])
            if account is None:
                raise ValidationError(f"Line {idx}: unknown account code {line['account_code']!r}")

        if not account.is_active:
            raise ValidationError(f"Line {idx}: account {account.code} is inactive")

        resolved.append({**line, "account": account})

    return resolved


# ============================================================
# Entry numbers
# ============================================================


def format_entry_number(year: int, value: int) -> str:
    return f"{ENTRY_NUMBER_PREFIX}-{year}-{value:06d}"


def _next_entry_number(*, tenant_id: str, year: int) -> str:
    """
    Atomic per-tenant, per-year counter.

    The sequence row is locked and incremented with an F() update, so two
    writers never receive the same number.
    """
    qs = JournalSequence.objects.select_for_update().filter(tenant_id=tenant_id, year=year)
    sequence = qs.first()

    if sequence is None:
        # Continue after any entries that predate the sequence row.
        existing = (
            JournalEntry.objects.for_tenant(tenant_id)
            .filter(entry_number__startswith=f"{ENTRY_NUMBER_PREFIX}-{year}-")
            .count()
        )
        try:
            with transaction.atomic():
                sequence = JournalSequence.objects.create(
                    tenant_id=tenant_id, year=year, last_value=existing
                )
        except IntegrityError:
            sequence = qs.get()

    JournalSequence.objects.filter(pk=sequence.pk).update(last_value=F("last_value") + 1)
    sequence.refresh_from_db(fields=["last_value"])
    return format_entry_number(year, sequence.last_value)


# ============================================================
# Persistence
# ============================================================


def _write_lines(*, entry: JournalEntry, lines: list[dict]) -> None:
    JournalEntryLine.objects.bulk_create(
        [
            JournalEntryLine(
                journal_entry=entry,
                line_no=no,
                account=line["account"],
                account_code=line["account"].code,
                account_name=line["account"].name,
                account_type=line["account"].account_type,
                debit=line["debit"],
                credit=line["credit"],
                description=line["description"],
            )
            for no, line in enumerate(lines, start=1)
        ]
    )


@transaction.atomic
def _persist_entry(
    *,
    tenant_id: str,
    parsed_lines: list[dict],
    total_debit: Decimal,
    total_credit: Decimal,
    entry_date: date_cls,
    transaction_type: str,
    description: str,
    source: dict,
    project: str,
    notes: str,
    created_by,
    status: str,
    reversal_of: JournalEntry | None = None,
) -> JournalEntry:
    lines = _resolve_line_accounts(tenant_id=tenant_id, parsed_lines=parsed_lines, created_by=created_by)

    now = timezone.now()
    is_posted = status == JournalEntry.POSTED

    try:
        entry = JournalEntry.objects.create(
            tenant_id=tenant_id,
            entry_number=_next_entry_number(tenant_id=tenant_id, year=entry_date.year),
            date=entry_date,
            transaction_type=transaction_type,
            source_model=source["model"],
            source_id=source["id"],
            source_reference=source["reference"],
            project=project,
            description=description,
            notes=notes,
            total_debit=total_debit,
            total_credit=total_credit,
            status=status,
            is_posted=is_posted,
            posted_at=now if is_posted else None,
            reversal_of=reversal_of,
            created_by=created_by,
        )
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages)) from exc

    _write_lines(entry=entry, lines=lines)

    if is_posted:
        post_to_general_ledger(entry)

    return entry


def _user_or_none(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


def _get_entry_for_update(*, tenant_id: str, entry_id) -> JournalEntry:
    try:
        return JournalEntry.objects.for_tenant(tenant_id).select_for_update().get(pk=entry_id)
    except (JournalEntry.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Journal entry {entry_id} not found") from exc


def _require_status(entry: JournalEntry, required: str, action: str) -> None:
    if entry.status != required:
        raise InvalidStateError(
            f"Cannot {action} journal entry {entry.entry_number}: status is {entry.status}, "
            f"must be {required}",
            current_state=entry.status,
            required_state=required,
        )


# ============================================================
# Public API
# ============================================================


def create_journal_entry(
    *,
    tenant_id,
    lines: list,
    date=None,
    transaction_type: str,
    description: str,
    source: dict | None = None,
    project: str | None = None,
    notes: str = "",
    created_by=None,
    status: str = JournalEntry.POSTED,
) -> JournalEntry:
    """
    Create a journal entry; Posted entries hit the general ledger in the
    same transaction, Draft entries are stored only.

    lines: [{"account": Account} or {"account_code", ["account_name", "account_type"]},
            "debit", "credit", "description"]
    source: {"model": "SalesInvoice", "id": ..., "reference": "INV-001"}
    """
    tenant_id = require_tenant_id(tenant_id)

    if status not in (JournalEntry.DRAFT, JournalEntry.POSTED):
        raise ValidationError(f"New journal entries must be Draft or Posted, not {status!r}")

    description = _validate_header(transaction_type=transaction_type, description=description)
    entry_date = _as_date(date)
    normalized_source = _normalize_source(source)
    parsed_lines, total_debit, total_credit = _parse_lines(lines)
    created_by = _user_or_none(created_by)

    try:
        entry = _persist_entry(
            tenant_id=tenant_id,
            parsed_lines=parsed_lines,
            total_debit=total_debit,
            total_credit=total_credit,
            entry_date=entry_date,
            transaction_type=transaction_type,
            description=description,
            source=normalized_source,
            project=(project or "").strip(),
            notes=(notes or "").strip(),
            created_by=created_by,
            status=status,
        )
    except DatabaseError as exc:
        raise InfrastructureError(f"Failed to create journal entry: {exc}") from exc

    logger.info(
        "Journal entry created",
        extra={
            "tenant_id": tenant_id,
            "entry_number": entry.entry_number,
            "transaction_type": transaction_type,
            "status": entry.status,
            "total": str(total_debit),
        },
    )
    return entry


def reverse_journal_entry(*, tenant_id, entry_id, user=None, reason: str) -> JournalEntry:
    """
    Reverse a Posted entry.

    - New Adjustment entry with every line's debit/credit swapped, dated today
    - The reversal is posted first, chaining from the original's still-Active rows
    - Then the original entry -> Reversed and its ledger rows -> Reversed;
      the reversal's own rows stay Active
    - Reversal entries themselves cannot be reversed
    """
    tenant_id = require_tenant_id(tenant_id)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required to reverse a journal entry")

    user = _user_or_none(user)

    try:
        with transaction.atomic():
            original = _get_entry_for_update(tenant_id=tenant_id, entry_id=entry_id)
            _require_status(original, JournalEntry.POSTED, "reverse")

            if original.reversal_of_id:
                raise InvalidStateError(
                    f"Journal entry {original.entry_number} is itself a reversal and cannot be reversed",
                    current_state=original.status,
                    required_state=JournalEntry.POSTED,
                )

            swapped = [
                {
                    "account": line.account,
                    "debit": line.credit,
                    "credit": line.debit,
                    "description": f"Reversal of {line.description}" if line.description else "Reversal",
                }
                for line in original.lines.select_related("account").order_by("line_no")
            ]
            parsed_lines, total_debit, total_credit = _parse_lines(swapped)

            reversal = _persist_entry(
                tenant_id=tenant_id,
                parsed_lines=parsed_lines,
                total_debit=total_debit,
                total_credit=total_credit,
                entry_date=timezone.localdate(),
                transaction_type=JournalEntry.ADJUSTMENT,
                description=f"Reversal: {reason}",
                source={
                    "model": JournalEntry.SOURCE_MANUAL,
                    "id": str(original.pk),
                    "reference": f"Reversal of {original.entry_number}",
                },
                project=original.project,
                notes="",
                created_by=user,
                status=JournalEntry.POSTED,
                reversal_of=original,
            )

            GeneralLedgerEntry.objects.filter(
                tenant_id=tenant_id,
                journal_entry_id=original.pk,
                status=GeneralLedgerEntry.ACTIVE,
            ).update(status=GeneralLedgerEntry.REVERSED)

            original.status = JournalEntry.REVERSED
            original.save(update_fields=["status", "updated_at"])
    except DatabaseError as exc:
        raise InfrastructureError(f"Failed to reverse journal entry: {exc}") from exc

    logger.info(
        "Journal entry reversed",
        extra={
            "tenant_id": tenant_id,
            "entry_number": original.entry_number,
            "reversal_entry_number": reversal.entry_number,
        },
    )
    return reversal


def post_draft_journal_entry(*, tenant_id, entry_id, user=None) -> JournalEntry:
    """Draft -> Posted: re-validate, stamp approval, post to the general ledger."""
    tenant_id = require_tenant_id(tenant_id)
    user = _user_or_none(user)

    try:
        with transaction.atomic():
            entry = _get_entry_for_update(tenant_id=tenant_id, entry_id=entry_id)
            _require_status(entry, JournalEntry.DRAFT, "post")

            lines = list(entry.lines.select_related("account").order_by("line_no"))
            _parse_lines(
                [
                    {"account": line.account, "debit": line.debit, "credit": line.credit}
                    for line in lines
                ]
            )

            now = timezone.now()
            entry.status = JournalEntry.POSTED
            entry.is_posted = True
            entry.posted_at = now
            entry.approved_by = user
            entry.approved_at = now
            entry.save(
                update_fields=[
                    "status",
                    "is_posted",
                    "posted_at",
                    "approved_by",
                    "approved_at",
                    "updated_at",
                ]
            )

            post_to_general_ledger(entry)
    except DatabaseError as exc:
        raise InfrastructureError(f"Failed to post journal entry: {exc}") from exc

    logger.info(
        "Draft journal entry posted",
        extra={"tenant_id": tenant_id, "entry_number": entry.entry_number},
    )
    return entry


def update_draft_journal_entry(
    *,
    tenant_id,
    entry_id,
    date=None,
    description: str | None = None,
    lines: list | None = None,
    notes: str | None = None,
    project: str | None = None,
    transaction_type: str | None = None,
    user=None,
) -> JournalEntry:
    tenant_id = require_tenant_id(tenant_id)
    user = _user_or_none(user)

    parsed = None
    if lines is not None:
        parsed = _parse_lines(lines)

    try:
        with transaction.atomic():
            entry = _get_entry_for_update(tenant_id=tenant_id, entry_id=entry_id)
            _require_status(entry, JournalEntry.DRAFT, "update")

            if transaction_type is not None or description is not None:
                entry.description = _validate_header(
                    transaction_type=transaction_type or entry.transaction_type,
                    description=entry.description if description is None else description,
                )
            if transaction_type is not None:
                entry.transaction_type = transaction_type
            if date is not None:
                entry.date = _as_date(date)
            if notes is not None:
                entry.notes = notes.strip()
            if project is not None:
                entry.project = project.strip()

            if parsed is not None:
                parsed_lines, total_debit, total_credit = parsed
                resolved = _resolve_line_accounts(
                    tenant_id=tenant_id, parsed_lines=parsed_lines, created_by=user
                )
                entry.lines.all().delete()
                _write_lines(entry=entry, lines=resolved)
                entry.total_debit = total_debit
                entry.total_credit = total_credit

            try:
                entry.save()
            except DjangoValidationError as exc:
                raise ValidationError("; ".join(exc.messages)) from exc
    except DatabaseError as exc:
        raise InfrastructureError(f"Failed to update journal entry: {exc}") from exc

    return entry


def delete_draft_journal_entry(*, tenant_id, entry_id) -> None:
    tenant_id = require_tenant_id(tenant_id)

    try:
        with transaction.atomic():
            entry = _get_entry_for_update(tenant_id=tenant_id, entry_id=entry_id)
            _require_status(entry, JournalEntry.DRAFT, "delete")
            entry_number = entry.entry_number
            entry.delete()
    except DatabaseError as exc:
        raise InfrastructureError(f"Failed to delete journal entry: {exc}") from exc

    logger.info(
        "Draft journal entry deleted",
        extra={"tenant_id": tenant_id, "entry_number": entry_number},
    )


def get_journal_entry(*, tenant_id, entry_id) -> JournalEntry:
    tenant_id = require_tenant_id(tenant_id)
    try:
        return (
            JournalEntry.objects.for_tenant(tenant_id)
            .prefetch_related("lines")
            .get(pk=entry_id)
        )
    except (JournalEntry.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFoundError(f"Journal entry {entry_id} not found") from exc


def list_journal_entries(
    *,
    tenant_id,
    start_date=None,
    end_date=None,
    transaction_type: str | None = None,
    status: str | None = None,
    project: str | None = None,
):
    tenant_id = require_tenant_id(tenant_id)
    qs = JournalEntry.objects.for_tenant(tenant_id)

    if start_date:
        qs = qs.filter(date__gte=_as_date(start_date))
    if end_date:
        qs = qs.filter(date__lte=_as_date(end_date))
    if transaction_type:
        qs = qs.filter(transaction_type=transaction_type)
    if status:
        qs = qs.filter(status=status)
    if project:
        qs = qs.filter(project=project)

    return qs.prefetch_related("lines").order_by("-date", "-created_at", "-id")


def get_entries_by_account(*, tenant_id, account_code, start_date=None, end_date=None):
    """Posted entries with at least one line on account_code, oldest first."""
    tenant_id = require_tenant_id(tenant_id)
    code = (str(account_code) if account_code is not None else "").strip()
    if not code:
        raise ValidationError("account_code is required")

    qs = JournalEntry.objects.for_tenant(tenant_id).filter(
        status=JournalEntry.POSTED,
        lines__account_code=code,
    )
    if start_date:
        qs = qs.filter(date__gte=_as_date(start_date))
    if end_date:
        qs = qs.filter(date__lte=_as_date(end_date))

    return qs.distinct().prefetch_related("lines").order_by("date", "created_at", "id")
