# accounting/services/trial_balance_service.py

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.balance_service import as_date, net_balances_by_account
from accounting.services.tenancy import require_tenant_id


TWOPLACES = Decimal("0.01")
BALANCE_TOLERANCE = Decimal("0.01")


def _q2(amount: Decimal) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _to_major_number(amount: Decimal) -> float:
    return float(_q2(amount))


def _to_minor_int(amount: Decimal) -> int:
    return int((_q2(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


class TrialBalanceService:
    """
    Trial Balance computation service.

    Guarantees:
    - Scopes to one tenant's Active ledger rows dated on/before as_of
    - Each account's net (debit - credit) lands in exactly ONE column
    - Net-zero accounts are omitted
    - Sorted by account code
    - Avoids N+1 queries by aggregating in bulk
    - Returns JSON-safe numeric values (no Decimals)
    """

    def __init__(self, ledger_model=GeneralLedgerEntry):
        self.Ledger = ledger_model

    def generate(self, *, tenant_id, as_of=None):
        tenant_id = require_tenant_id(tenant_id)
        cutoff = as_date(as_of, default=timezone.localdate())

        qs = self.Ledger.objects.for_tenant(tenant_id).filter(
            status=self.Ledger.ACTIVE,
            date__lte=cutoff,
        )

        accounts_output = []
        total_debit = Decimal("0.00")
        total_credit = Decimal("0.00")

        for row in net_balances_by_account(qs):
            net = _q2(row["balance"])
            if net == Decimal("0.00"):
                continue

            debit = net if net > 0 else Decimal("0.00")
            credit = -net if net < 0 else Decimal("0.00")

            accounts_output.append(
                {
                    "account_code": row["account_code"],
                    "account_name": row["account_name"],
                    "account_type": row["account_type"],
                    "debit": _to_major_number(debit),
                    "credit": _to_major_number(credit),
                    "debit_minor": _to_minor_int(debit),
                    "credit_minor": _to_minor_int(credit),
                }
            )

            total_debit += debit
            total_credit += credit

        total_debit = _q2(total_debit)
        total_credit = _q2(total_credit)

        return {
            "as_of": cutoff.isoformat(),
            "accounts": accounts_output,
            "total_debit": _to_major_number(total_debit),
            "total_credit": _to_major_number(total_credit),
            "total_debit_minor": _to_minor_int(total_debit),
            "total_credit_minor": _to_minor_int(total_credit),
            "is_balanced": abs(total_debit - total_credit) < BALANCE_TOLERANCE,
        }


def get_trial_balance(*, tenant_id, as_of=None) -> dict:
    return TrialBalanceService().generate(tenant_id=tenant_id, as_of=as_of)
