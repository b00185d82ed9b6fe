# accounting/services/account_registry.py

"""
PATH: accounting/services/account_registry.py

CHART OF ACCOUNTS REGISTRY (AUTHORITATIVE)

This module answers ONE question:
"Which Account does this code post to, for this tenant?"

Resolution order (get_or_create_account):
1) exact Account.code match within the tenant
2) SubAccount code match within the tenant -> the *parent* account
   (sub/list accounts have no ledger identity of their own)
3) otherwise create a top-level account (lazy, never fails for missing setup)

Concurrency:
- Account (tenant_id, code) is unique at the DB level.
- Creation runs in a savepoint; on IntegrityError the winner's row is re-read,
  so two concurrent callers never produce two accounts with one code.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from accounting.models.account import Account, SubAccount
from accounting.services.exceptions import AccountResolutionError, ValidationError
from accounting.services.tenancy import require_tenant_id

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# FINANCIAL COMPONENTS
# ------------------------------------------------------------

FINANCIAL_COMPONENTS = {
    Account.ASSET: "Assets",
    Account.LIABILITY: "Liabilities",
    Account.EQUITY: "Equity",
    Account.REVENUE: "Operating Income",
    Account.EXPENSE: "Operating Expenses",
}

DEFAULT_FINANCIAL_COMPONENT = "Other"

# ------------------------------------------------------------
# SYSTEM-DEFAULT ACCOUNTS (used by the posting adapters)
# ------------------------------------------------------------

CASH = "CASH"
BANK = "BANK"
ACCOUNTS_RECEIVABLE = "AR"
INVENTORY = "INVENTORY"
ACCOUNTS_PAYABLE = "AP"
SALES_REVENUE = "SALES_REVENUE"
PROPERTY_SALES_REVENUE = "PROPERTY_SALES_REVENUE"

SYSTEM_ACCOUNTS = {
    CASH: ("1000", "Cash Account", Account.ASSET),
    BANK: ("1100", "Bank - Account", Account.ASSET),
    ACCOUNTS_RECEIVABLE: ("1200", "Accounts Receivable", Account.ASSET),
    INVENTORY: ("1300", "Inventory", Account.ASSET),
    ACCOUNTS_PAYABLE: ("2000", "Accounts Payable", Account.LIABILITY),
    SALES_REVENUE: ("4000", "Sales Revenue", Account.REVENUE),
    PROPERTY_SALES_REVENUE: ("4001", "Property Sales Revenue", Account.REVENUE),
}

_VALID_TYPES = {value for value, _label in Account.ACCOUNT_TYPES}


def _norm_code(code) -> str:
    return (str(code) if code is not None else "").strip()


def get_financial_component(account_type: str) -> str:
    return FINANCIAL_COMPONENTS.get(account_type, DEFAULT_FINANCIAL_COMPONENT)


def find_account_by_code(*, tenant_id, code) -> Account | None:
    """
    Look up an account by its own code, then by a sub/list-account code.
    Returns None when neither matches.
    """
    tenant_id = require_tenant_id(tenant_id)
    code = _norm_code(code)
    if not code:
        return None

    account = Account.objects.for_tenant(tenant_id).filter(code=code).first()
    if account is not None:
        return account

    sub = (
        SubAccount.objects.for_tenant(tenant_id)
        .select_related("account")
        .filter(code=code)
        .first()
    )
    if sub is not None:
        return sub.account

    return None


def get_or_create_account(
    *,
    tenant_id,
    code,
    name: str,
    account_type: str,
    created_by=None,
) -> Account:
    tenant_id = require_tenant_id(tenant_id)
    code = _norm_code(code)
    name = (name or "").strip()

    if not code:
        raise ValidationError("Account code is required")
    if account_type not in _VALID_TYPES:
        raise ValidationError(f"Invalid account type: {account_type!r}")

    existing = find_account_by_code(tenant_id=tenant_id, code=code)
    if existing is not None:
        return existing

    if not name:
        raise ValidationError(f"Account name is required to create account {code}")

    try:
        with transaction.atomic():
            account = Account.objects.create(
                tenant_id=tenant_id,
                code=code,
                name=name,
                account_type=account_type,
                financial_component=get_financial_component(account_type),
                created_by=created_by,
            )
    except DjangoValidationError as exc:
        raise ValidationError(f"Invalid account {code}: {'; '.join(exc.messages)}") from exc
    except IntegrityError as exc:
        # Lost a create race: the other writer's row is the account.
        account = Account.objects.for_tenant(tenant_id).filter(code=code).first()
        if account is None:
            raise AccountResolutionError(
                f"Could not create or load account {code} for tenant {tenant_id}"
            ) from exc
        return account

    logger.info(
        "Created account on first use",
        extra={
            "tenant_id": tenant_id,
            "account_code": code,
            "account_type": account_type,
        },
    )
    return account


def create_account(
    *,
    tenant_id,
    code,
    name: str,
    account_type: str,
    description: str = "",
    parent_code=None,
    created_by=None,
) -> Account:
    """
    Explicit chart maintenance (API / seed commands).

    Unlike get_or_create_account, an existing code is an error.
    """
    tenant_id = require_tenant_id(tenant_id)
    code = _norm_code(code)

    if not code:
        raise ValidationError("Account code is required")
    if account_type not in _VALID_TYPES:
        raise ValidationError(f"Invalid account type: {account_type!r}")
    if find_account_by_code(tenant_id=tenant_id, code=code) is not None:
        raise ValidationError(f"Account code {code} already exists")

    parent = None
    if parent_code:
        parent = Account.objects.for_tenant(tenant_id).filter(code=_norm_code(parent_code)).first()
        if parent is None:
            raise ValidationError(f"Parent account {parent_code} not found")

    try:
        with transaction.atomic():
            account = Account.objects.create(
                tenant_id=tenant_id,
                code=code,
                name=(name or "").strip(),
                account_type=account_type,
                financial_component=get_financial_component(account_type),
                description=(description or "").strip(),
                parent_account=parent,
                created_by=created_by,
            )
    except DjangoValidationError as exc:
        raise ValidationError(f"Invalid account {code}: {'; '.join(exc.messages)}") from exc
    except IntegrityError as exc:
        raise ValidationError(f"Account code {code} already exists") from exc

    logger.info(
        "Created account",
        extra={"tenant_id": tenant_id, "account_code": code, "account_type": account_type},
    )
    return account


def get_system_account(*, tenant_id, key: str, name: str | None = None, created_by=None) -> Account:
    """
    Resolve one of the system-default accounts (cash, bank, AR, ...).

    name overrides the default name used if the account has to be created
    (e.g. "Bank - Meezan" for the bank account).
    """
    try:
        code, default_name, account_type = SYSTEM_ACCOUNTS[key]
    except KeyError as exc:
        raise AccountResolutionError(f"Unknown system account key: {key!r}") from exc

    return get_or_create_account(
        tenant_id=tenant_id,
        code=code,
        name=name or default_name,
        account_type=account_type,
        created_by=created_by,
    )


def seed_system_accounts(*, tenant_id, created_by=None) -> list[Account]:
    """Idempotently create every system-default account for a tenant."""
    return [
        get_system_account(tenant_id=tenant_id, key=key, created_by=created_by)
        for key in SYSTEM_ACCOUNTS
    ]
