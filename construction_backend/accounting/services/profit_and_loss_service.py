# accounting/services/profit_and_loss_service.py

"""
PROFIT & LOSS SERVICE (INCOME STATEMENT)

Read-only aggregation over immutable ledger entries.

Contract:
{
  "period": {"start_date": "YYYY-MM-DD" | null, "end_date": "YYYY-MM-DD" | null},
  "revenue": {"accounts": [...], "total": float, "total_minor": int},
  "expenses": {"accounts": [...], "total": float, "total_minor": int},
  "net_profit": float,
  "net_profit_minor": int,
  "net_profit_margin": float      # percent of revenue, 0 without revenue
}

Key rules:
- Uses GeneralLedgerEntry.date as the accounting effective date
- Active rows only; each account reported as |debit - credit|
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from accounting.models.account import Account
from accounting.services.balance_service import active_rows, as_date, net_balances_by_account
from accounting.services.exceptions import ValidationError
from accounting.services.tenancy import require_tenant_id


TWOPLACES = Decimal("0.01")


def _q2(amount: Decimal) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_major_number(amount: Decimal) -> float:
    return float(_q2(amount))


def _to_minor_int(amount: Decimal) -> int:
    return int((_q2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _collect(rows: list[dict]) -> tuple[list[dict], Decimal]:
    accounts = []
    total = Decimal("0.00")
    for row in rows:
        amount = _q2(abs(row["balance"]))
        if amount == Decimal("0.00"):
            continue
        accounts.append(
            {
                "account_code": row["account_code"],
                "account_name": row["account_name"],
                "amount": _to_major_number(amount),
                "amount_minor": _to_minor_int(amount),
            }
        )
        total += amount
    return accounts, _q2(total)


def get_profit_and_loss(*, tenant_id, start_date=None, end_date=None):
    tenant_id = require_tenant_id(tenant_id)
    start = as_date(start_date)
    end = as_date(end_date)
    if start and end and start > end:
        raise ValidationError("start_date must be on or before end_date")

    qs = active_rows(tenant_id).filter(account_type__in=[Account.REVENUE, Account.EXPENSE])
    if start:
        qs = qs.filter(date__gte=start)
    if end:
        qs = qs.filter(date__lte=end)

    balances = net_balances_by_account(qs)

    revenue_accounts, total_revenue = _collect(
        [r for r in balances if r["account_type"] == Account.REVENUE],
    )
    expense_accounts, total_expenses = _collect(
        [r for r in balances if r["account_type"] == Account.EXPENSE],
    )

    net_profit = _q2(total_revenue - total_expenses)

    margin = Decimal("0.00")
    if total_revenue > 0:
        margin = _q2(net_profit / total_revenue * 100)

    return {
        "period": {
            "start_date": start.isoformat() if start else None,
            "end_date": end.isoformat() if end else None,
        },
        "revenue": {
            "accounts": revenue_accounts,
            "total": _to_major_number(total_revenue),
            "total_minor": _to_minor_int(total_revenue),
        },
        "expenses": {
            "accounts": expense_accounts,
            "total": _to_major_number(total_expenses),
            "total_minor": _to_minor_int(total_expenses),
        },
        "net_profit": _to_major_number(net_profit),
        "net_profit_minor": _to_minor_int(net_profit),
        "net_profit_margin": _to_major_number(margin),
    }
