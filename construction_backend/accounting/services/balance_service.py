# accounting/services/balance_service.py

"""
BALANCE & LEDGER QUERY SERVICE (AUTHORITATIVE)

Read-only ledger aggregation helpers.

RULES:
- READ-ONLY: no writes, ever
- GeneralLedgerEntry is the single source of truth
- Accounting timeline is GeneralLedgerEntry.date (the entry's effective date)
- Only Active rows count toward balances
- Uniform sign: balance = debit - credit for every account type
- Tenant-scoped: every query starts with for_tenant()
"""

from __future__ import annotations

from datetime import date as date_cls, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.dateparse import parse_date

from accounting.models.account import Account
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.exceptions import ValidationError
from accounting.services.tenancy import require_tenant_id


TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def as_date(value, *, default=None) -> date_cls | None:
    """Accept date / datetime / 'YYYY-MM-DD'; None -> default."""
    if value is None or value == "":
        return default
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


def _norm_code(account_code) -> str:
    code = (str(account_code) if account_code is not None else "").strip()
    if not code:
        raise ValidationError("account_code is required")
    return code


def active_rows(tenant_id: str):
    return GeneralLedgerEntry.objects.for_tenant(tenant_id).filter(
        status=GeneralLedgerEntry.ACTIVE
    )


def _sum_debit_credit(qs) -> tuple[Decimal, Decimal]:
    totals = qs.aggregate(
        total_debit=Coalesce(Sum("debit"), ZERO),
        total_credit=Coalesce(Sum("credit"), ZERO),
    )
    return _q2(totals["total_debit"]), _q2(totals["total_credit"])


def _row_dict(row: GeneralLedgerEntry) -> dict:
    return {
        "id": row.id,
        "date": row.date,
        "entry_number": row.entry_number,
        "account_code": row.account_code,
        "account_name": row.account_name,
        "account_type": row.account_type,
        "description": row.description,
        "transaction_type": row.transaction_type,
        "project": row.project,
        "debit": _q2(row.debit),
        "credit": _q2(row.credit),
        "source_model": row.source_model,
        "source_id": row.source_id,
        "source_reference": row.source_reference,
    }


# ------------------------------------------------------------
# Account balance / ledger
# ------------------------------------------------------------


def get_account_balance(*, tenant_id, account_code, as_of=None) -> dict:
    tenant_id = require_tenant_id(tenant_id)
    code = _norm_code(account_code)
    cutoff = as_date(as_of, default=timezone.localdate())

    qs = active_rows(tenant_id).filter(account_code=code, date__lte=cutoff)
    total_debit, total_credit = _sum_debit_credit(qs)

    return {
        "account_code": code,
        "as_of": cutoff,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "balance": _q2(total_debit - total_credit),
    }


def get_account_ledger(*, tenant_id, account_code, start_date=None, end_date=None) -> dict:
    """
    Account statement.

    opening_balance sums Active rows dated strictly before start_date
    (0 when no start_date); each entry carries a running_balance
    recomputed from the opening balance in (date, created_at, id) order.
    """
    tenant_id = require_tenant_id(tenant_id)
    code = _norm_code(account_code)
    start = as_date(start_date)
    end = as_date(end_date)

    if start and end and start > end:
        raise ValidationError("start_date must be on or before end_date")

    base = active_rows(tenant_id).filter(account_code=code)

    opening = ZERO
    if start is not None:
        debit, credit = _sum_debit_credit(base.filter(date__lt=start))
        opening = _q2(debit - credit)

    qs = base
    if start is not None:
        qs = qs.filter(date__gte=start)
    if end is not None:
        qs = qs.filter(date__lte=end)

    running = opening
    entries = []
    for row in qs.order_by("date", "created_at", "id"):
        running = _q2(running + row.debit - row.credit)
        item = _row_dict(row)
        item["running_balance"] = running
        entries.append(item)

    account = Account.objects.for_tenant(tenant_id).filter(code=code).first()

    return {
        "account_code": code,
        "account_name": account.name if account else "",
        "account_type": account.account_type if account else "",
        "start_date": start,
        "end_date": end,
        "opening_balance": opening,
        "closing_balance": running,
        "entries": entries,
    }


def query_ledger_entries(
    *,
    tenant_id,
    account_code=None,
    account_type=None,
    transaction_type=None,
    project=None,
    start_date=None,
    end_date=None,
    status=GeneralLedgerEntry.ACTIVE,
):
    """Raw ledger rows for a tenant. status=None returns every status."""
    tenant_id = require_tenant_id(tenant_id)
    qs = GeneralLedgerEntry.objects.for_tenant(tenant_id)

    if status:
        qs = qs.filter(status=status)
    if account_code:
        qs = qs.filter(account_code=str(account_code).strip())
    if account_type:
        qs = qs.filter(account_type=account_type)
    if transaction_type:
        qs = qs.filter(transaction_type=transaction_type)
    if project:
        qs = qs.filter(project=project)

    start = as_date(start_date)
    end = as_date(end_date)
    if start is not None:
        qs = qs.filter(date__gte=start)
    if end is not None:
        qs = qs.filter(date__lte=end)

    return qs.order_by("date", "created_at", "id")


# ------------------------------------------------------------
# Per-account net balances (shared by statements)
# ------------------------------------------------------------


def net_balances_by_account(qs) -> list[dict]:
    """
    Bulk aggregation (no N+1): one dict per account_code with
    total_debit / total_credit / balance, sorted by code.
    """
    rows = (
        qs.values("account_code", "account_name", "account_type")
        .annotate(
            total_debit=Coalesce(Sum("debit"), ZERO),
            total_credit=Coalesce(Sum("credit"), ZERO),
        )
        .order_by("account_code")
    )

    merged: dict[str, dict] = {}
    for r in rows:
        # Snapshot names can differ across rows after a rename; keep the first.
        item = merged.setdefault(
            r["account_code"],
            {
                "account_code": r["account_code"],
                "account_name": r["account_name"],
                "account_type": r["account_type"],
                "total_debit": ZERO,
                "total_credit": ZERO,
            },
        )
        item["total_debit"] = _q2(item["total_debit"] + r["total_debit"])
        item["total_credit"] = _q2(item["total_credit"] + r["total_credit"])

    results = []
    for item in merged.values():
        item["balance"] = _q2(item["total_debit"] - item["total_credit"])
        results.append(item)

    return sorted(results, key=lambda i: i["account_code"])


# ------------------------------------------------------------
# Project ledger
# ------------------------------------------------------------


def get_project_ledger(*, tenant_id, project, start_date=None, end_date=None) -> dict:
    """
    Revenue / expense / asset activity booked against one project.

    revenue total is credit - debit, expense and asset totals are
    debit - credit; margin is net_profit / revenue * 100 (0 unless revenue > 0).
    """
    tenant_id = require_tenant_id(tenant_id)
    project = (project or "").strip()
    if not project:
        raise ValidationError("project is required")

    qs = query_ledger_entries(
        tenant_id=tenant_id,
        project=project,
        start_date=start_date,
        end_date=end_date,
    )

    sections = {
        Account.REVENUE: [],
        Account.EXPENSE: [],
        Account.ASSET: [],
    }
    for row in qs.filter(account_type__in=list(sections)):
        sections[row.account_type].append(_row_dict(row))

    def _total(rows, *, credit_normal: bool) -> Decimal:
        debit = sum((r["debit"] for r in rows), ZERO)
        credit = sum((r["credit"] for r in rows), ZERO)
        return _q2(credit - debit) if credit_normal else _q2(debit - credit)

    total_revenue = _total(sections[Account.REVENUE], credit_normal=True)
    total_expenses = _total(sections[Account.EXPENSE], credit_normal=False)
    total_assets = _total(sections[Account.ASSET], credit_normal=False)
    net_profit = _q2(total_revenue - total_expenses)

    margin = ZERO
    if total_revenue > 0:
        margin = _q2(net_profit / total_revenue * 100)

    return {
        "project": project,
        "start_date": as_date(start_date),
        "end_date": as_date(end_date),
        "revenue": sections[Account.REVENUE],
        "expenses": sections[Account.EXPENSE],
        "assets": sections[Account.ASSET],
        "summary": {
            "total_revenue": total_revenue,
            "total_expenses": total_expenses,
            "total_assets": total_assets,
            "net_profit": net_profit,
            "profit_margin": margin,
        },
    }
