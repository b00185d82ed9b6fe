# accounting/services/tenancy.py

"""
TENANT GUARD

Every service takes tenant_id explicitly. This is the single check
that it is present before any query runs.
"""

from __future__ import annotations

from accounting.models.tenant import TENANT_ID_MAX_LENGTH
from accounting.services.exceptions import ValidationError


def require_tenant_id(tenant_id) -> str:
    value = (str(tenant_id) if tenant_id is not None else "").strip()
    if not value:
        raise ValidationError("tenant_id is required")
    if len(value) > TENANT_ID_MAX_LENGTH:
        raise ValidationError(f"tenant_id is longer than {TENANT_ID_MAX_LENGTH} characters")
    return value
