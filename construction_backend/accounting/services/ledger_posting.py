# accounting/services/ledger_posting.py

"""
======================================================
PATH: accounting/services/ledger_posting.py
======================================================
GENERAL LEDGER POSTER

Turns the lines of a saved journal entry into GeneralLedgerEntry rows.

Rules:
- Exactly one ledger row per journal line
- balance = previous balance + debit - credit (uniform, no sign flip by type)
- previous balance = the account's most recent Active row,
  ordered by (date, created_at, id)
- Account rows are locked (select_for_update) for the duration of the
  transaction so same-account postings are serialized

Not idempotent on its own: the journal entry service calls it exactly once
per entry (creation / draft post / reversal). Nothing else should.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from accounting.models.account import Account
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

DESCRIPTION_MAX_LENGTH = 255


def _q2(amount: Decimal) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _lock_accounts(account_ids) -> None:
    # Sorted to keep lock order stable across concurrent posters.
    ids = sorted(set(account_ids))
    locked = Account.objects.select_for_update().filter(id__in=ids).order_by("id")
    list(locked.values_list("id", flat=True))


def get_previous_balance(*, tenant_id: str, account_code: str) -> Decimal:
    last_balance = (
        GeneralLedgerEntry.objects.for_tenant(tenant_id)
        .filter(account_code=account_code, status=GeneralLedgerEntry.ACTIVE)
        .order_by("-date", "-created_at", "-id")
        .values_list("balance", flat=True)
        .first()
    )
    return _q2(last_balance) if last_balance is not None else Decimal("0.00")


@transaction.atomic
def post_to_general_ledger(journal_entry) -> list[GeneralLedgerEntry]:
    if journal_entry is None or not journal_entry.pk:
        raise ValidationError("Journal entry must be saved before posting to the ledger")

    lines = list(journal_entry.lines.select_related("account").order_by("line_no"))
    if not lines:
        raise ValidationError(f"Journal entry {journal_entry.entry_number} has no lines to post")

    tenant_id = journal_entry.tenant_id
    _lock_accounts(line.account_id for line in lines)

    rows: list[GeneralLedgerEntry] = []
    for line in lines:
        debit = _q2(line.debit)
        credit = _q2(line.credit)

        previous = get_previous_balance(tenant_id=tenant_id, account_code=line.account_code)
        balance = _q2(previous + debit - credit)

        description = (line.description or journal_entry.description or "")[:DESCRIPTION_MAX_LENGTH]

        rows.append(
            GeneralLedgerEntry.objects.create(
                tenant_id=tenant_id,
                account=line.account,
                account_code=line.account_code,
                account_name=line.account_name,
                account_type=line.account_type,
                date=journal_entry.date,
                journal_entry=journal_entry,
                entry_number=journal_entry.entry_number,
                description=description,
                transaction_type=journal_entry.transaction_type,
                project=journal_entry.project,
                debit=debit,
                credit=credit,
                balance=balance,
                source_model=journal_entry.source_model,
                source_id=journal_entry.source_id,
                source_reference=journal_entry.source_reference,
                status=GeneralLedgerEntry.ACTIVE,
            )
        )

    logger.debug(
        "Posted journal entry to general ledger",
        extra={
            "tenant_id": tenant_id,
            "entry_number": journal_entry.entry_number,
            "rows": len(rows),
        },
    )
    return rows
