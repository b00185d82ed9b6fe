# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTERS

Map business documents -> balanced journal entries and call
create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT persist documents (callers own their masters).
- It DOES map business events -> accounting postings.
- It ALWAYS resolves accounts through the registry (lazy creation).
- It ALWAYS calls create_journal_entry for balance checks + ledger posting.

Snapshots:
- Each adapter takes a snapshot of the source document: a mapping
  (e.g. request data, serializer.validated_data) or any object exposing
  the same attribute names.
- Zero-amount lines are omitted; the engine rejects what is left if it
  does not balance.

| adapter               | debit                          | credit                        |
|-----------------------|--------------------------------|-------------------------------|
| post_sale             | Cash (received), AR (balance)  | Sales Revenue (net_total)     |
| post_purchase         | Inventory                      | Accounts Payable              |
| post_bank_payment     | each payment line account      | Bank - <bank_account>         |
| post_cash_payment     | each payment line account      | Cash                          |
| post_plot_booking     | Cash (received), AR (due)      | Property Sales Revenue        |
| post_plot_sale        | Cash                           | AR                            |
| post_payment_receipt  | Cash or Bank                   | AR                            |
| post_supplier_payment | AP                             | Cash or Bank                  |
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from django.utils import timezone

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.posting_task import LedgerPostingTask
from accounting.services import account_registry as registry
from accounting.services.exceptions import ValidationError
from accounting.services.journal_entry_service import create_journal_entry

TWOPLACES = Decimal("0.01")

PAYMENT_METHOD_CASH = "Cash"


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {v!r}") from exc


def _get(snapshot: Any, key: str, default=None):
    if isinstance(snapshot, dict):
        value = snapshot.get(key, default)
    else:
        value = getattr(snapshot, key, default)
    return default if value is None else value


def _text(snapshot: Any, key: str, default: str = "") -> str:
    return str(_get(snapshot, key, default) or default).strip()


def _line(account: Account, *, debit=None, credit=None, description: str = "") -> dict:
    return {
        "account": account,
        "debit": _money(debit),
        "credit": _money(credit),
        "description": description,
    }


def _post(*, tenant_id, user, lines, **entry_kwargs) -> JournalEntry:
    lines = [ln for ln in lines if ln["debit"] > 0 or ln["credit"] > 0]
    return create_journal_entry(
        tenant_id=tenant_id,
        lines=lines,
        created_by=user,
        **entry_kwargs,
    )


def _source(model: str, snapshot: Any, reference: str) -> dict:
    return {"model": model, "id": _get(snapshot, "id", ""), "reference": reference}


def _system(tenant_id, key: str, user=None, name: str | None = None) -> Account:
    return registry.get_system_account(tenant_id=tenant_id, key=key, name=name, created_by=user)


def _cash_or_bank(*, tenant_id, snapshot, user) -> Account:
    if _text(snapshot, "payment_method") == PAYMENT_METHOD_CASH:
        return _system(tenant_id, registry.CASH, user)
    bank_name = _text(snapshot, "bank_name") or "Account"
    return _system(tenant_id, registry.BANK, user, name=f"Bank - {bank_name}")


def _payment_line_accounts(*, tenant_id, snapshot, user) -> list[dict]:
    payment_lines = _get(snapshot, "payment_lines", []) or []
    if not payment_lines:
        raise ValidationError("Payment has no payment lines")

    lines = []
    for idx, pl in enumerate(payment_lines, start=1):
        code = _text(pl, "account_code")
        if not code:
            raise ValidationError(f"Payment line {idx} is missing account_code")

        account = registry.get_or_create_account(
            tenant_id=tenant_id,
            code=code,
            name=_text(pl, "account_name") or code,
            account_type=_text(pl, "account_type") or Account.EXPENSE,
            created_by=user,
        )
        lines.append(
            _line(
                account,
                debit=_get(pl, "amount"),
                description=_text(pl, "description") or "Expense payment",
            )
        )
    return lines


# ============================================================
# Sales / purchases
# ============================================================


def post_sale(sale, *, tenant_id, user=None) -> JournalEntry:
    """
    Sales invoice.

    Debit Cash for amount_received, AR for balance; credit Sales Revenue
    for net_total.
    """
    serial_no = _text(sale, "serial_no")
    customer = _text(sale, "customer_name")

    cash = _system(tenant_id, registry.CASH, user)
    receivable = _system(tenant_id, registry.ACCOUNTS_RECEIVABLE, user)
    revenue = _system(tenant_id, registry.SALES_REVENUE, user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(cash, debit=_get(sale, "amount_received"), description=f"Cash received from {customer}"),
            _line(receivable, debit=_get(sale, "balance"), description=f"Balance due from {customer}"),
            _line(
                revenue,
                credit=_get(sale, "net_total"),
                description=f"Sales revenue from Invoice {serial_no}",
            ),
        ],
        date=_get(sale, "date"),
        transaction_type=JournalEntry.SALE,
        description=f"Sales Invoice {serial_no} - {customer}",
        source=_source(JournalEntry.SOURCE_SALES_INVOICE, sale, serial_no),
        project=_text(sale, "project"),
    )


def post_purchase(purchase, *, tenant_id, user=None) -> JournalEntry:
    po_no = _text(purchase, "purchase_order_no")
    vendor = _text(purchase, "vendor_name")
    amount = _get(purchase, "net_amount")

    inventory = _system(tenant_id, registry.INVENTORY, user)
    payable = _system(tenant_id, registry.ACCOUNTS_PAYABLE, user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(inventory, debit=amount, description=f"Purchase of {_text(purchase, 'item_name')}"),
            _line(payable, credit=amount, description=f"Purchase from {vendor}"),
        ],
        date=_get(purchase, "date"),
        transaction_type=JournalEntry.PURCHASE,
        description=f"Purchase Order {po_no} - {vendor}",
        source=_source(JournalEntry.SOURCE_PURCHASE, purchase, po_no),
        project=_text(purchase, "project"),
    )


# ============================================================
# Payments
# ============================================================


def post_bank_payment(payment, *, tenant_id, user=None) -> JournalEntry:
    serial_no = _text(payment, "serial_no")
    bank_account = _text(payment, "bank_account")

    bank = _system(tenant_id, registry.BANK, user, name=f"Bank - {bank_account or 'Account'}")
    debit_lines = _payment_line_accounts(tenant_id=tenant_id, snapshot=payment, user=user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(bank, credit=_get(payment, "total_amount"), description=f"Payment via {bank_account}"),
            *debit_lines,
        ],
        date=_get(payment, "date"),
        transaction_type=JournalEntry.PAYMENT,
        description=f"Bank Payment {serial_no} - {bank_account}",
        source=_source(JournalEntry.SOURCE_BANK_PAYMENT, payment, serial_no),
        project=_text(payment, "project"),
    )


def post_cash_payment(payment, *, tenant_id, user=None) -> JournalEntry:
    serial_no = _text(payment, "serial_no")

    cash = _system(tenant_id, registry.CASH, user)
    debit_lines = _payment_line_accounts(tenant_id=tenant_id, snapshot=payment, user=user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(cash, credit=_get(payment, "total_amount"), description="Cash payment"),
            *debit_lines,
        ],
        date=_get(payment, "date"),
        transaction_type=JournalEntry.PAYMENT,
        description=f"Cash Payment {serial_no}",
        source=_source(JournalEntry.SOURCE_CASH_PAYMENT, payment, serial_no),
        project=_text(payment, "project"),
    )


def post_payment_receipt(payment, *, tenant_id, user=None) -> JournalEntry:
    """Customer pays: debit Cash/Bank, credit AR."""
    customer = _text(payment, "customer_name")
    amount = _get(payment, "amount")

    money_account = _cash_or_bank(tenant_id=tenant_id, snapshot=payment, user=user)
    receivable = _system(tenant_id, registry.ACCOUNTS_RECEIVABLE, user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(money_account, debit=amount, description=f"Payment received from {customer}"),
            _line(
                receivable,
                credit=amount,
                description=f"Payment against Invoice {_text(payment, 'invoice_ref')}".strip(),
            ),
        ],
        date=_get(payment, "date"),
        transaction_type=JournalEntry.RECEIPT,
        description=f"Payment receipt from {customer}",
        source={"model": JournalEntry.SOURCE_MANUAL, "reference": _text(payment, "reference")},
    )


def post_supplier_payment(payment, *, tenant_id, user=None) -> JournalEntry:
    """Pay a supplier: debit AP, credit Cash/Bank."""
    supplier = _text(payment, "supplier_name")
    amount = _get(payment, "amount")

    payable = _system(tenant_id, registry.ACCOUNTS_PAYABLE, user)
    money_account = _cash_or_bank(tenant_id=tenant_id, snapshot=payment, user=user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(payable, debit=amount, description=f"Payment to {supplier}"),
            _line(
                money_account,
                credit=amount,
                description=f"Payment to supplier via {_text(payment, 'payment_method')}",
            ),
        ],
        date=_get(payment, "date"),
        transaction_type=JournalEntry.PAYMENT,
        description=f"Payment to supplier {supplier}",
        source={"model": JournalEntry.SOURCE_MANUAL, "reference": _text(payment, "reference")},
    )


# ============================================================
# Plots
# ============================================================


def post_plot_booking(plot, *, tenant_id, user=None) -> JournalEntry | None:
    """
    Plot booking.

    total = final_price or gross_amount or base_price
    received = amount_received or booking_amount
    Debit Cash (received) + AR (total - received); credit Property Sales
    Revenue (total). Returns None when the plot has no price.
    """
    plot_no = _text(plot, "plot_number")

    total = (
        _money(_get(plot, "final_price"))
        or _money(_get(plot, "gross_amount"))
        or _money(_get(plot, "base_price"))
    )
    if total <= 0:
        return None

    received = _money(_get(plot, "amount_received")) or _money(_get(plot, "booking_amount"))
    balance_due = total - received

    cash = _system(tenant_id, registry.CASH, user)
    receivable = _system(tenant_id, registry.ACCOUNTS_RECEIVABLE, user)
    revenue = _system(tenant_id, registry.PROPERTY_SALES_REVENUE, user)

    description = f"Plot Booking {plot_no}"
    if _get(plot, "customer"):
        description += " - Customer linked"

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(cash, debit=received, description=f"Booking amount received for plot {plot_no}"),
            _line(
                receivable,
                debit=balance_due if balance_due > 0 else None,
                description=f"Balance due from customer for plot {plot_no}",
            ),
            _line(revenue, credit=total, description=f"Plot booking revenue for {plot_no}"),
        ],
        date=_get(plot, "booking_date") or timezone.localdate(),
        transaction_type=JournalEntry.BOOKING,
        description=description,
        source=_source(JournalEntry.SOURCE_PLOT, plot, plot_no),
        project=_text(plot, "project"),
    )


def post_plot_sale(plot, *, tenant_id, user=None) -> JournalEntry | None:
    """Payment collected on a booked plot: debit Cash, credit AR. None if nothing received."""
    amount = _money(_get(plot, "amount_received"))
    if amount <= 0:
        return None

    plot_no = _text(plot, "plot_number")
    cash = _system(tenant_id, registry.CASH, user)
    receivable = _system(tenant_id, registry.ACCOUNTS_RECEIVABLE, user)

    return _post(
        tenant_id=tenant_id,
        user=user,
        lines=[
            _line(cash, debit=amount, description=f"Payment received for plot {plot_no}"),
            _line(receivable, credit=amount, description=f"Payment against plot {plot_no}"),
        ],
        date=_get(plot, "sale_date") or timezone.localdate(),
        transaction_type=JournalEntry.SALE,
        description=f"Plot Sale Payment {plot_no}",
        source=_source(JournalEntry.SOURCE_PLOT, plot, plot_no),
        project=_text(plot, "project"),
    )


ADAPTERS = {
    LedgerPostingTask.KIND_SALE: post_sale,
    LedgerPostingTask.KIND_PURCHASE: post_purchase,
    LedgerPostingTask.KIND_BANK_PAYMENT: post_bank_payment,
    LedgerPostingTask.KIND_CASH_PAYMENT: post_cash_payment,
    LedgerPostingTask.KIND_PLOT_BOOKING: post_plot_booking,
    LedgerPostingTask.KIND_PLOT_SALE: post_plot_sale,
    LedgerPostingTask.KIND_PAYMENT_RECEIPT: post_payment_receipt,
    LedgerPostingTask.KIND_SUPPLIER_PAYMENT: post_supplier_payment,
}
