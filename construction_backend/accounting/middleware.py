# accounting/middleware.py

"""
PATH: accounting/middleware.py

TENANT MIDDLEWARE

Attaches request.tenant_id for the accounting API.

Rules:
- Tenant id comes from the header configured by ACCOUNTING_TENANT_HEADER
  (default: X-Tenant-ID -> HTTP_X_TENANT_ID)
- Blank / missing header -> request.tenant_id = None
- Authorizing the tenant for the user happens upstream; this only reads it
"""

from __future__ import annotations

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin

from accounting.models.tenant import TENANT_ID_MAX_LENGTH


class TenantMiddleware(MiddlewareMixin):
    def process_request(self, request):
        header = getattr(settings, "ACCOUNTING_TENANT_HEADER", "HTTP_X_TENANT_ID")
        raw = (request.META.get(header) or "").strip()

        if not raw or len(raw) > TENANT_ID_MAX_LENGTH:
            request.tenant_id = None
            return

        request.tenant_id = raw
