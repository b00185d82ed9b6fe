# accounting/services/balance_sheet_service.py

"""
BALANCE SHEET SERVICE

Pure accounting read service.

Responsibilities:
- Compute balances per account as at a given date
- Classify balances into Assets, Liabilities, Equity
- Report whether Assets == Liabilities + Equity (within 0.01)

Important:
- Only Asset / Liability / Equity accounts are reported. Revenue and
  Expense activity is NOT rolled into equity, so is_balanced is False
  until earnings are closed to an equity account by a journal entry.
- Asset balances are debit - credit; liability and equity balances are
  reported as absolute values.

Contract:
- API emits numeric JSON values (not strings)
- Provide both major-unit numbers (floats, 2dp) and minor-unit ints (exact)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from accounting.models.account import Account
from accounting.services.balance_service import active_rows, as_date, net_balances_by_account
from accounting.services.tenancy import require_tenant_id

TWOPLACES = Decimal("0.01")
BALANCE_TOLERANCE = Decimal("0.01")

SECTION_BY_TYPE = {
    Account.ASSET: "assets",
    Account.LIABILITY: "liabilities",
    Account.EQUITY: "equity",
}


def _q2(amount: Decimal) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_major_number(amount: Decimal) -> float:
    return float(_q2(amount))


def _to_minor_int(amount: Decimal) -> int:
    return int((_q2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _section(accounts: list[dict], total: Decimal) -> dict:
    return {
        "accounts": accounts,
        "total": _to_major_number(total),
        "total_minor": _to_minor_int(total),
    }


def get_balance_sheet(*, tenant_id, as_of=None) -> dict:
    """
    Returns:
        {
            "as_of": "YYYY-MM-DD",
            "assets": {"accounts": [...], "total": 0.0, "total_minor": 0},
            "liabilities": {...},
            "equity": {...},
            "total_liabilities_and_equity": 0.0,
            "total_liabilities_and_equity_minor": 0,
            "is_balanced": true
        }
    """
    tenant_id = require_tenant_id(tenant_id)
    cutoff = as_date(as_of, default=timezone.localdate())

    qs = active_rows(tenant_id).filter(
        date__lte=cutoff,
        account_type__in=list(SECTION_BY_TYPE),
    )

    sections = {name: [] for name in SECTION_BY_TYPE.values()}
    totals = {name: Decimal("0.00") for name in SECTION_BY_TYPE.values()}

    for row in net_balances_by_account(qs):
        net = _q2(row["balance"])
        if net == Decimal("0.00"):
            continue

        name = SECTION_BY_TYPE[row["account_type"]]
        amount = net if name == "assets" else abs(net)

        sections[name].append(
            {
                "account_code": row["account_code"],
                "account_name": row["account_name"],
                "balance": _to_major_number(amount),
                "balance_minor": _to_minor_int(amount),
            }
        )
        totals[name] += amount

    total_assets = _q2(totals["assets"])
    liabilities_and_equity = _q2(totals["liabilities"] + totals["equity"])

    return {
        "as_of": cutoff.isoformat(),
        "assets": _section(sections["assets"], totals["assets"]),
        "liabilities": _section(sections["liabilities"], totals["liabilities"]),
        "equity": _section(sections["equity"], totals["equity"]),
        "total_liabilities_and_equity": _to_major_number(liabilities_and_equity),
        "total_liabilities_and_equity_minor": _to_minor_int(liabilities_and_equity),
        "is_balanced": abs(total_assets - liabilities_and_equity) < BALANCE_TOLERANCE,
    }
