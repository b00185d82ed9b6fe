# accounting/models/account.py

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.tenant import TenantManager, tenant_id_field


class Account(models.Model):
    """
    Represents a single ledger account in a tenant's chart of accounts.

    Guarantees:
    - Account codes are unique per tenant (DB constraint)
    - Code + name are normalized (trimmed)
    - account_type is treated as immutable once the account is referenced
    """

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    tenant_id = tenant_id_field()

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    financial_component = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Statement grouping label (Assets, Operating Income, ...)",
    )

    description = models.TextField(blank=True, default="")

    parent_account = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )

    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["tenant_id", "code"], name="acc_tenant_code_idx"),
            models.Index(fields=["tenant_id", "account_type"], name="acc_tenant_type_idx"),
            models.Index(fields=["is_active"], name="acc_active_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "code"],
                name="uniq_account_tenant_code",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    def clean(self):
        self.tenant_id = (self.tenant_id or "").strip()
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.tenant_id:
            raise ValidationError("Account tenant_id is required")
        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        if self.parent_account_id and self.parent_account.tenant_id != self.tenant_id:
            raise ValidationError("Parent account must belong to the same tenant")

    def save(self, *args, **kwargs):
        # Uniqueness is enforced by the DB constraint (see services/account_registry.py).
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)


class SubAccount(models.Model):
    """
    Nested leaf code under an Account.

    Sub-accounts and list-accounts have no ledger identity of their own:
    postings against their code land on the parent account.
    """

    SUB = "sub"
    LIST = "list"

    KINDS = [
        (SUB, "Sub-account"),
        (LIST, "List account"),
    ]

    tenant_id = tenant_id_field()

    account = models.ForeignKey(
        Account,
        on_delete=models.CASCADE,
        related_name="sub_accounts",
    )

    kind = models.CharField(max_length=10, choices=KINDS, default=SUB)
    code = models.CharField(max_length=20)
    name = models.CharField(max_length=150, blank=True, default="")
    sub_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Type label for sub-accounts",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        ordering = ["code"]
        verbose_name = "Sub-account"
        verbose_name_plural = "Sub-accounts"
        indexes = [
            models.Index(fields=["tenant_id", "code"], name="subacc_tenant_code_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "code"],
                name="uniq_subaccount_tenant_code",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_subaccount_code_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} ({self.kind}) → {self.account.code}"

    def clean(self):
        self.code = (self.code or "").strip()
        if not self.code:
            raise ValidationError("Sub-account code is required")

        if self.account_id and self.account.tenant_id != self.tenant_id:
            raise ValidationError("Sub-account must belong to its parent account's tenant")

    def save(self, *args, **kwargs):
        if self.account_id and not self.tenant_id:
            self.tenant_id = self.account.tenant_id
        self.full_clean(validate_unique=False, validate_constraints=False)
        return super().save(*args, **kwargs)
