# accounting/models/tenant.py

"""
======================================================
PATH: accounting/models/tenant.py
======================================================
TENANT SCOPING

Every accounting record carries a tenant_id discriminator.
Every query goes through .for_tenant(tenant_id) first.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

TENANT_ID_MAX_LENGTH = 64


class TenantQuerySet(models.QuerySet):
    def for_tenant(self, tenant_id):
        tenant_id = (str(tenant_id) if tenant_id is not None else "").strip()
        if not tenant_id:
            raise ValidationError("tenant_id is required")
        return self.filter(tenant_id=tenant_id)


TenantManager = models.Manager.from_queryset(TenantQuerySet)


def tenant_id_field():
    return models.CharField(
        max_length=TENANT_ID_MAX_LENGTH,
        db_index=True,
        help_text="Tenant discriminator (leading filter on every query)",
    )
